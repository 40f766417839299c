import pytest

from steam_animation_daemon.errors import MountError
from steam_animation_daemon.models.enums import AnimationType
from steam_animation_daemon.services.mount_controller import CommandMountBackend, MountController

from conftest import FakeMountBackend


@pytest.fixture
def cached(tmp_path):
    path = tmp_path / "cache" / "0123456789abcdef.webm"
    path.parent.mkdir()
    path.write_bytes(b"webm")
    return path


@pytest.mark.asyncio
async def test_swap_creates_placeholder_and_binds(tmp_path, cached, mount_backend):
    controller = MountController(tmp_path / "overrides", mount_backend)

    target = await controller.swap(cached, AnimationType.BOOT)

    assert target == tmp_path / "overrides" / "deck_startup.webm"
    assert target.exists()
    assert mount_backend.binds == [(cached, target)]
    assert mount_backend.unbinds == []


@pytest.mark.asyncio
async def test_swap_releases_previous_mount_first(tmp_path, cached, mount_backend):
    controller = MountController(tmp_path / "overrides", mount_backend)
    target = await controller.swap(cached, AnimationType.SUSPEND)

    await controller.swap(cached, AnimationType.SUSPEND)

    assert mount_backend.unbinds == [target]
    assert len(mount_backend.binds) == 2


@pytest.mark.asyncio
async def test_failed_unbind_is_not_fatal(tmp_path, cached):
    backend = FakeMountBackend(fail_unbind=True)
    controller = MountController(tmp_path / "overrides", backend)
    stale = controller.target_path(AnimationType.THROBBER)
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"")

    target = await controller.swap(cached, AnimationType.THROBBER)

    assert target == stale
    assert backend.binds == [(cached, target)]


@pytest.mark.asyncio
async def test_failed_bind_leaves_slot_empty(tmp_path, cached):
    backend = FakeMountBackend(fail_bind=True)
    controller = MountController(tmp_path / "overrides", backend)

    with pytest.raises(MountError):
        await controller.swap(cached, AnimationType.BOOT)

    assert not controller.target_path(AnimationType.BOOT).exists()


@pytest.mark.asyncio
async def test_release_slot(tmp_path, cached, mount_backend):
    controller = MountController(tmp_path / "overrides", mount_backend)

    assert await controller.release_slot(AnimationType.BOOT) is False

    target = await controller.swap(cached, AnimationType.BOOT)
    assert await controller.release_slot(AnimationType.BOOT) is True
    assert not target.exists()
    assert mount_backend.unbinds == [target]


@pytest.mark.asyncio
async def test_command_backend_reports_failure(tmp_path, cached):
    backend = CommandMountBackend(mount="false", umount="false")

    with pytest.raises(MountError):
        await backend.bind(cached, tmp_path / "target")
    with pytest.raises(MountError):
        await backend.unbind(tmp_path / "target")


@pytest.mark.asyncio
async def test_command_backend_missing_binary(tmp_path, cached):
    backend = CommandMountBackend(mount=str(tmp_path / "no-mount"))

    with pytest.raises(MountError):
        await backend.bind(cached, tmp_path / "target")


@pytest.mark.asyncio
async def test_command_backend_success(tmp_path, cached):
    backend = CommandMountBackend(mount="true", umount="true")

    await backend.bind(cached, tmp_path / "target")
    await backend.unbind(tmp_path / "target")
