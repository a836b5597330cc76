import pytest

from lvm2py.core import containerized, context


# --- Core Fixtures ---


@pytest.fixture(autouse=True)
def reset_process_state(monkeypatch):
    """
    Resets the process-wide lvm2py configuration before and after each test.

    Container detection is pinned to "not containerized" so results do not
    depend on whether the test suite itself runs inside a container; tests
    that need the containerized path request `containerized_host`.
    """
    context.set_use_standard_locale(False)
    context.set_default_wait_delay(0.0)
    monkeypatch.setattr(containerized, "is_containerized", lambda ctx=None: False)
    yield
    context.set_use_standard_locale(False)
    context.set_default_wait_delay(0.0)


@pytest.fixture
def containerized_host(monkeypatch):
    """Pretends the current process runs inside a container."""
    monkeypatch.setattr(containerized, "is_containerized", lambda ctx=None: True)


@pytest.fixture
def clean_env(monkeypatch):
    """Removes every LVM2PY_* override from the environment."""
    for name in (
        "LVM2PY_LVM_BINARY",
        "LVM2PY_NSENTER_PATH",
        "LVM2PY_USE_STANDARD_LOCALE",
        "LVM2PY_WAIT_DELAY_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
