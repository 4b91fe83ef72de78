"""Default handling for events that are not commands or that failed to route."""

from datetime import datetime

from theia_client.logs import log_debug


class Fallback:
    """Builds the "not implemented" response for unhandled events."""

    def handle(self, event: dict) -> dict:
        response = {
            'status': 'error',
            'message': 'Function not implemented',
            'requested': event.get('command') or event.get('action'),
            'timestamp': datetime.now().isoformat(timespec='seconds'),
        }
        if event.get('error'):
            response['error'] = event['error']
        log_debug(f"Fallback response: {response}")
        return response
