import asyncio

from govee_lan_protocol import __version__
from govee_lan_protocol.__main__ import arun


def test_version_command(capsys) -> None:
    rc = asyncio.run(arun(["version"]))

    assert rc == 0
    assert capsys.readouterr().out.strip() == __version__


def test_bare_command_requires_subcommand(capsys) -> None:
    rc = asyncio.run(arun([]))

    assert rc == 1
    assert "A command is required" in capsys.readouterr().err


def test_unknown_option_is_a_usage_error() -> None:
    rc = asyncio.run(arun(["--no-such-option"]))

    assert rc == 2


def test_send_rejects_non_object_data(capsys) -> None:
    rc = asyncio.run(arun(["send", "dev-1", "turn", "[1, 2]"]))

    assert rc == 1
    assert "must be a JSON object" in capsys.readouterr().err
