from .bridge import BridgeState, FileFieldConfig, FileUploadBridge
from .formats import is_api_format, to_create_format, to_ui_format
from .widget import UploadSDK, UploadSDKNotLoaded, UploadSDKProvider, UploadWidget, upload_sdk

__all__ = [
    "BridgeState",
    "FileFieldConfig",
    "FileUploadBridge",
    "UploadSDK",
    "UploadSDKNotLoaded",
    "UploadSDKProvider",
    "UploadWidget",
    "is_api_format",
    "to_create_format",
    "to_ui_format",
    "upload_sdk",
]
