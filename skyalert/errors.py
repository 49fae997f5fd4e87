"""Closed error taxonomy for forecast lookups."""

from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_REQUEST = "invalid_request"
    DECODING_FAILED = "decoding_failed"
    SERVER_ERROR = "server_error"
    EMPTY_RESULT = "empty_result"
    CANCELLED = "cancelled"
    TRANSPORT_ERROR = "transport_error"
    OTHER = "other"


class ForecastError(Exception):
    """Base for every error the forecast client surfaces."""

    kind: ErrorKind = ErrorKind.OTHER
    retryable: bool = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value


class InvalidRequest(ForecastError):
    kind = ErrorKind.INVALID_REQUEST


class DecodingFailed(ForecastError):
    kind = ErrorKind.DECODING_FAILED
    retryable = True


class ServerError(ForecastError):
    kind = ErrorKind.SERVER_ERROR
    retryable = True

    def __init__(self, status_code: int, message: str = ""):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


class EmptyResult(ForecastError):
    kind = ErrorKind.EMPTY_RESULT


class Cancelled(ForecastError):
    kind = ErrorKind.CANCELLED


class TransportError(ForecastError):
    kind = ErrorKind.TRANSPORT_ERROR
    retryable = True


class Other(ForecastError):
    kind = ErrorKind.OTHER
    retryable = True

    def __init__(self, cause: BaseException):
        super().__init__(str(cause) or type(cause).__name__)
        self.cause = cause


_MESSAGES: dict[str, dict[ErrorKind, str]] = {
    "en": {
        ErrorKind.INVALID_REQUEST: "The request was invalid.",
        ErrorKind.DECODING_FAILED: "Could not read the weather data.",
        ErrorKind.SERVER_ERROR: "Server error ({status}).",
        ErrorKind.EMPTY_RESULT: "No matching results.",
        ErrorKind.CANCELLED: "The request was cancelled.",
        ErrorKind.TRANSPORT_ERROR: "Network connection failed.",
        ErrorKind.OTHER: "Something went wrong: {detail}",
    },
    "ja": {
        ErrorKind.INVALID_REQUEST: "不正なリクエストです。",
        ErrorKind.DECODING_FAILED: "データの解析に失敗しました。",
        ErrorKind.SERVER_ERROR: "サーバーエラー（{status}）。",
        ErrorKind.EMPTY_RESULT: "該当する結果がありません。",
        ErrorKind.CANCELLED: "リクエストはキャンセルされました。",
        ErrorKind.TRANSPORT_ERROR: "ネットワークに接続できませんでした。",
        ErrorKind.OTHER: "エラーが発生しました：{detail}",
    },
}


def describe_error(exc: ForecastError, locale: str = "en") -> str:
    """User-facing message for an error, in English or Japanese."""
    lang = "ja" if locale.lower().startswith("ja") else "en"
    template = _MESSAGES[lang][exc.kind]
    return template.format(
        status=getattr(exc, "status_code", ""),
        detail=exc.message,
    )
