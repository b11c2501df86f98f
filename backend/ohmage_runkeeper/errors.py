"""Error types surfaced by the RunKeeper OMH adapter.

Every error carries a coarse ``code`` that is returned to OMH callers next to
the human-readable text.
"""


class OmhError(Exception):
    code = "0100"

    def __init__(self, text: str, *, code: str | None = None):
        super().__init__(text)
        if code is not None:
            self.code = code

    @property
    def text(self) -> str:
        return str(self)

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "text": self.text}


class PayloadIdValidationError(OmhError):
    code = "0701"


class UnsupportedOperationError(OmhError):
    code = "0702"


class RunKeeperApiError(OmhError):
    code = "0710"


class RunKeeperTransportError(RunKeeperApiError):
    code = "0711"


class RunKeeperProtocolError(RunKeeperApiError):
    code = "0712"


class ServiceError(OmhError):
    code = "0720"
