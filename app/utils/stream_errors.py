from typing import Optional


class StreamProxyError(Exception):
    """Base class for failures while proxying a media stream."""


class UpstreamTimeout(StreamProxyError):
    pass


class UpstreamUnreachable(StreamProxyError):
    pass


class UpstreamErrorStatus(StreamProxyError):
    def __init__(self, status_code: int, detail: Optional[str] = None):
        super().__init__(f"Origin responded with status {status_code}")
        self.status_code = status_code
        self.detail = detail or ""


class MidStreamFailure(StreamProxyError):
    pass


class HeadersAlreadySent(StreamProxyError):
    pass
