"""Authentication header and TLS helpers shared by the socket and the relay."""

import base64
import ssl


def basic_auth_headers(username, password) -> dict:
    """Build an ``Authorization: Basic`` header, or nothing without credentials."""
    if not username or not password:
        return {}
    credentials = f"{username}:{password}".encode('utf-8')
    return {'Authorization': f"Basic {base64.b64encode(credentials).decode('ascii')}"}


def insecure_ssl_context() -> ssl.SSLContext:
    """TLS context that trusts every certificate (verification disabled, a known risk)."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx
