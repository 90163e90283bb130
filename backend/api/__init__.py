"""
Vogue API Package.

FastAPI WebSocket delivery channels and the server runner.
Requires Python 3.11+.
"""

# Import app lazily to avoid circular imports
# Use: from api.main import app
