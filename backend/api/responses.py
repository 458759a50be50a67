import time
from typing import Any, Dict, Optional

from backend.engine.stream import current_request_id


class APIResponse:
    """Envelope shared by every /api route.

    Each body carries the request id that also goes out in the X-Request-ID
    header and in the log lines, so a failed dashboard load can be traced.
    """

    @staticmethod
    def _envelope(success: bool, code: str, message: str) -> Dict[str, Any]:
        request_id: Optional[str] = current_request_id.get()
        return {
            "success": success,
            "code": code,
            "message": message,
            "request_id": request_id,
            "timestamp": time.time(),
        }

    @classmethod
    def success(cls, data: Any, code: str = "success", message: str = "Operation successful") -> Dict[str, Any]:
        response = cls._envelope(True, code, message)
        response["data"] = data
        return response

    @classmethod
    def error(cls, error_type: str, details: str, code: str = "error", status_code: int = 400) -> tuple[Dict[str, Any], int]:
        """Return an error envelope and the HTTP status to send it with.

        ``message`` is the user-facing text the frontend shows as-is.
        """
        response = cls._envelope(False, code, details)
        response["error"] = {"type": error_type, "details": details}
        return response, status_code
