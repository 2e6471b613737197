# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Service-exception to HTTP-status translation, and the response envelope."""
from contextlib import contextmanager
from typing import Any, Dict, Optional

from fastapi import HTTPException


@contextmanager
def service_errors():
    """KeyError → 404, PermissionError → 403, ValueError → 400."""
    try:
        yield
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0] if exc.args else "Not found")
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc) or "Forbidden")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body
