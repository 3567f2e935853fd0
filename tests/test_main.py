import pytest

from look_to_point import __main__ as entry
from look_to_point.core.state import ExitStatus


@pytest.fixture(autouse=True)
def no_env_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)


@pytest.mark.parametrize("status", [ExitStatus.SUCCESS, ExitStatus.FAILURE])
def test_exit_code_follows_the_run_status(monkeypatch, status):
    async def finished(settings):
        return status

    monkeypatch.setattr(entry, "run", finished)

    with pytest.raises(SystemExit) as exc:
        entry.main()

    assert exc.value.code == int(status)


def test_keyboard_interrupt_exits_cleanly(monkeypatch):
    def interrupted(settings):
        raise KeyboardInterrupt

    monkeypatch.setattr(entry, "run", interrupted)

    with pytest.raises(SystemExit) as exc:
        entry.main()

    assert exc.value.code == 0


def test_unexpected_error_exits_with_failure(monkeypatch):
    async def crashed(settings):
        raise RuntimeError("boom")

    monkeypatch.setattr(entry, "run", crashed)

    with pytest.raises(SystemExit) as exc:
        entry.main()

    assert exc.value.code == int(ExitStatus.FAILURE)
