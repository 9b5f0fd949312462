"""
Conversions between the two shapes a file can take.

API format is what the backend stores (has an integer "Id"); UI format is
what the upload widget displays (no "Id", keyed by a local "id" handle).
"""

from typing import Any, Dict, List, Optional, Sequence


def is_api_format(files: Optional[Sequence[Dict[str, Any]]]) -> bool:
    """Detect format from the first entry only; snapshots are never mixed."""
    if not files:
        return False
    first = files[0]
    return isinstance(first, dict) and "Id" in first


def file_identifier(file: Optional[Dict[str, Any]]) -> Any:
    if not file:
        return None
    identifier = file.get("Id")
    if identifier is None:
        identifier = file.get("id")
    return identifier


def _api_to_ui(file: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(file["Id"]),
        "name": file.get("Name") or file.get("file_name_c") or "",
        "size": file.get("Size") or file.get("file_size_c") or 0,
        "type": file.get("Type") or "",
        "url": file.get("Url"),
        "remote_id": file["Id"],
    }


def to_ui_format(files: Optional[Sequence[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Convert API entries to UI format. Entries already in UI format pass through."""
    return [
        _api_to_ui(file) if "Id" in file else dict(file)
        for file in files or []
    ]


def to_create_format(file: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a file of either format (or a raw upload descriptor) for a create call."""
    if "Id" in file:
        return {
            "Id": file["Id"],
            "Name": file.get("Name") or file.get("file_name_c") or "",
            "Size": file.get("Size") or file.get("file_size_c") or 0,
            "Type": file.get("Type") or "",
            "Url": file.get("Url"),
        }

    payload = {
        "Name": file.get("name") or "",
        "Size": file.get("size") or 0,
        "Type": file.get("type") or "",
        "Url": file.get("url"),
    }
    if file.get("remote_id") is not None:
        payload["Id"] = file["remote_id"]
    return payload
