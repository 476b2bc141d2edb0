from relay.service import ChatRelay, UploadedFile, UploadResult

__all__ = ["ChatRelay", "UploadedFile", "UploadResult"]
