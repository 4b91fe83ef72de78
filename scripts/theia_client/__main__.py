from theia_client.cli import main

main()
