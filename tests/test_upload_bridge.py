import asyncio
from types import SimpleNamespace

import pytest

from flowtrack.services.uploader import widget as widget_module
from flowtrack.services.uploader import (
    BridgeState,
    FileFieldConfig,
    FileUploadBridge,
    UploadSDK,
    UploadSDKProvider,
    UploadWidget,
)


class RecordingWidget(UploadWidget):
    """Upload widget double that records every call made to it"""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on or set()

    async def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    async def mount(self, anchor_id, config):
        await self._record("mount", anchor_id, config)

    async def unmount(self, anchor_id):
        await self._record("unmount", anchor_id)

    async def update_files(self, field_key, files):
        await self._record("update_files", field_key, files)

    async def clear_field(self, field_key):
        await self._record("clear_field", field_key)

    def names(self):
        return [call[0] for call in self.calls]


class CountingProvider(UploadSDKProvider):
    def __init__(self, sdk=None):
        super().__init__(sdk)
        self.checks = 0

    def current(self):
        self.checks += 1
        return super().current()


@pytest.fixture
def no_sleep(monkeypatch):
    """Replace the readiness poll's sleep and record the requested delays"""
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(widget_module, "asyncio", SimpleNamespace(sleep=fake_sleep))
    return delays


@pytest.fixture
def widget():
    return RecordingWidget()


@pytest.fixture
def bridge(widget):
    return FileUploadBridge(sdk_provider=UploadSDKProvider(UploadSDK(file_uploader=widget)))


def config(files=None, **overrides):
    values = {"field_key": "file_attachments_c", "field_name": "Attachments", "table_name": "task_c"}
    values.update(overrides)
    return FileFieldConfig(existing_files=files, **values)


API_FILES = [{"Id": 1, "Name": "a.txt", "Size": 3}, {"Id": 2, "Name": "b.txt", "Size": 4}]


@pytest.mark.asyncio
async def test_gives_up_after_fifty_polls_without_sdk(no_sleep):
    provider = CountingProvider()
    bridge = FileUploadBridge(sdk_provider=provider, poll_interval=0.1, max_attempts=50)

    state = await bridge.activate("uploader-1", config())

    assert state is BridgeState.ERROR
    assert "not loaded" in bridge.error
    assert provider.checks == 50
    assert no_sleep == [0.1] * 49
    assert not bridge.is_ready


@pytest.mark.asyncio
async def test_waits_for_sdk_registered_late(monkeypatch, widget):
    provider = UploadSDKProvider()
    polls = []

    async def register_on_third_poll(delay):
        polls.append(delay)
        if len(polls) == 3:
            provider.register(UploadSDK(file_uploader=widget))

    monkeypatch.setattr(widget_module, "asyncio", SimpleNamespace(sleep=register_on_third_poll))
    bridge = FileUploadBridge(sdk_provider=provider, poll_interval=0.1, max_attempts=50)

    assert await bridge.activate("uploader-1", config()) is BridgeState.READY
    assert len(polls) == 3
    assert widget.names() == ["mount"]


@pytest.mark.asyncio
async def test_mount_passes_existing_files(bridge, widget):
    state = await bridge.render("uploader-1", config(API_FILES, options={"maxFiles": 5}))

    assert state is BridgeState.READY
    assert bridge.error is None
    name, anchor_id, mount_config = widget.calls[0]
    assert (name, anchor_id) == ("mount", "uploader-1")
    assert mount_config == {
        "maxFiles": 5,
        "fieldKey": "file_attachments_c",
        "fieldName": "Attachments",
        "tableName": "task_c",
        "existingFiles": API_FILES,
    }
    # the snapshot handed to mount counts as seen
    assert widget.names() == ["mount"]


@pytest.mark.asyncio
async def test_mount_failure_sets_error_without_raising(widget):
    widget.fail_on = {"mount"}
    bridge = FileUploadBridge(sdk_provider=UploadSDKProvider(UploadSDK(file_uploader=widget)))

    assert await bridge.render("uploader-1", config()) is BridgeState.ERROR
    assert bridge.error == "Failed to mount file uploader: mount failed"


@pytest.mark.asyncio
async def test_sdk_without_file_uploader_is_a_mount_error():
    bridge = FileUploadBridge(sdk_provider=UploadSDKProvider(UploadSDK(file_uploader=None)))

    assert await bridge.activate("uploader-1", config()) is BridgeState.ERROR
    assert "not available" in bridge.error


@pytest.mark.asyncio
async def test_same_length_and_first_id_skips_sync(bridge, widget):
    await bridge.render("uploader-1", config(API_FILES))

    edited = [dict(API_FILES[0]), {"Id": 99, "Name": "renamed.txt"}]
    assert await bridge.sync_files(edited) is False
    await bridge.render("uploader-1", config(edited))

    assert widget.names() == ["mount"]


@pytest.mark.asyncio
async def test_changed_api_snapshot_is_pushed_in_ui_format(bridge, widget):
    await bridge.render("uploader-1", config(API_FILES))

    grown = API_FILES + [{"Id": 3, "Name": "c.txt", "Size": 5}]
    await bridge.render("uploader-1", config(grown))

    name, field_key, files = widget.calls[-1]
    assert (name, field_key) == ("update_files", "file_attachments_c")
    assert [f["id"] for f in files] == ["1", "2", "3"]
    assert all("Id" not in f for f in files)


@pytest.mark.asyncio
async def test_ui_snapshot_is_pushed_unchanged(bridge, widget):
    await bridge.render("uploader-1", config())

    ui_files = [{"id": "local-1", "name": "draft.txt", "size": 1}]
    assert await bridge.sync_files(ui_files) is True

    assert widget.calls[-1] == ("update_files", "file_attachments_c", ui_files)


@pytest.mark.asyncio
async def test_emptied_snapshot_clears_field(bridge, widget):
    await bridge.render("uploader-1", config(API_FILES))

    await bridge.render("uploader-1", config([]))

    assert widget.calls[-1] == ("clear_field", "file_attachments_c")
    # already empty, nothing more to do
    assert await bridge.sync_files([]) is False


@pytest.mark.asyncio
async def test_sync_requires_field_key(widget):
    bridge = FileUploadBridge(sdk_provider=UploadSDKProvider(UploadSDK(file_uploader=widget)))
    await bridge.render("uploader-1", config(field_key=""))

    assert await bridge.sync_files(API_FILES) is False
    assert widget.names() == ["mount"]


@pytest.mark.asyncio
async def test_sync_before_ready_is_skipped(bridge, widget):
    assert await bridge.sync_files(API_FILES) is False
    assert widget.calls == []


@pytest.mark.asyncio
async def test_update_failure_moves_to_error(widget):
    widget.fail_on = {"update_files"}
    bridge = FileUploadBridge(sdk_provider=UploadSDKProvider(UploadSDK(file_uploader=widget)))
    await bridge.render("uploader-1", config())

    await bridge.sync_files(API_FILES)

    assert bridge.state is BridgeState.ERROR
    assert bridge.error == "Failed to update files: update_files failed"


@pytest.mark.asyncio
async def test_identity_change_remounts(bridge, widget):
    await bridge.render("uploader-1", config(API_FILES))
    await bridge.render("uploader-1", config(API_FILES, field_name="Attachments"))
    assert widget.names() == ["mount"]

    await bridge.render("uploader-1", config(API_FILES, table_name="files_c"))
    await bridge.render("uploader-2", config(API_FILES, table_name="files_c"))

    assert widget.names() == ["mount", "unmount", "mount", "unmount", "mount"]
    assert widget.calls[-2] == ("unmount", "uploader-1")
    assert bridge.anchor_id == "uploader-2"


@pytest.mark.asyncio
async def test_deactivate_swallows_unmount_errors_and_resets(widget):
    widget.fail_on = {"unmount"}
    bridge = FileUploadBridge(sdk_provider=UploadSDKProvider(UploadSDK(file_uploader=widget)))
    await bridge.render("uploader-1", config(API_FILES))

    await bridge.deactivate()

    assert bridge.state is BridgeState.UNINITIALIZED
    assert bridge.anchor_id is None
    assert bridge.config is None

    # a fresh activation starts from an empty last-seen snapshot
    widget.fail_on = set()
    await bridge.render("uploader-1", config(API_FILES))
    assert widget.names() == ["mount", "unmount", "mount"]


@pytest.mark.asyncio
async def test_concurrent_syncs_apply_in_order(bridge, widget):
    await bridge.render("uploader-1", config())

    first = [{"id": "a", "name": "a"}]
    second = [{"id": "a", "name": "a"}, {"id": "b", "name": "b"}]
    await asyncio.gather(bridge.sync_files(first), bridge.sync_files(second), bridge.sync_files([]))

    assert widget.calls[1:] == [
        ("update_files", "file_attachments_c", first),
        ("update_files", "file_attachments_c", second),
        ("clear_field", "file_attachments_c"),
    ]
