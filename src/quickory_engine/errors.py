# quickory_engine/errors.py

class GameError(Exception):
    """Raised for invalid settings and undecodable session blobs."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Rejected operations (reported through ActionResult.error_code)
NO_SESSION = "NO_SESSION"
SESSION_FULL = "SESSION_FULL"
NOT_HOST = "NOT_HOST"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
ROUND_NOT_ACTIVE = "ROUND_NOT_ACTIVE"
ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
INVALID_STATE = "INVALID_STATE"
GAME_COMPLETED = "GAME_COMPLETED"

# Raised (start_game also reports INVALID_CONFIG)
INVALID_CONFIG = "INVALID_CONFIG"
DECODE_FAILED = "DECODE_FAILED"

# Peer updates
STALE_UPDATE = "STALE_UPDATE"
