# File: resquel/context.py
"""
Resquel - Request Context & Response Envelope
=============================================
Per-request state shared by the hook chain and the execution engine.
Both objects are created fresh for every request and dropped once the
response is sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from resquel.models import RouteSpec


@dataclass(slots=True)
class ResponseEnvelope:
    """
    The uniform JSON body: ``{"rows": [...]}``, or ``{}`` when ``rows``
    is ``None`` (DELETE).
    """

    rows: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def empty(cls) -> "ResponseEnvelope":
        return cls(rows=None)

    def to_dict(self) -> Dict[str, Any]:
        if self.rows is None:
            return {}
        return {"rows": self.rows}

    def to_response(self, status_code: int = 200) -> JSONResponse:
        return JSONResponse(content=jsonable_encoder(self.to_dict()), status_code=status_code)


@dataclass(slots=True)
class RequestContext:
    """
    Mutable state of one request as it moves through the pipeline.

    Hooks may read anything here, stash side effects in ``state``, replace
    ``envelope`` (after-hooks) or set ``response`` to answer the request
    themselves.
    """

    request: Request
    route: RouteSpec
    params: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    envelope: Optional[ResponseEnvelope] = None
    response: Optional[Response] = None
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def data(self) -> Any:
        """The ``data`` object of the body, ``None`` when absent."""
        if isinstance(self.body, Mapping):
            return self.body.get("data")
        return None
