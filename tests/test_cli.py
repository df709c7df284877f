"""Tests for visca2uvc.cli - argument parsing, exit codes and stream routing.

Test Categories:
    - ``build_parser``: option defaults and pass-through of command args
    - ``main``: end-to-end runs against the digital twin
    - ``main``: failure exit codes and stderr messages
"""

from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest

from visca2uvc.cli import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_USAGE,
    build_parser,
    command_arguments,
    main,
)
from visca2uvc.commands import USAGE
from visca2uvc.drivers.uvc import DigitalTwinConfig, DigitalTwinUvcLibrary, UvcError

TWIN = ["--mode", "digital_twin"]


def _results(out: str) -> list[str]:
    return out.partition("END DEVICE CONFIGURATION\n")[2].splitlines()


# =========================================================================
# build_parser
# =========================================================================


class TestBuildParser:
    """Option parsing."""

    def test_defaults(self) -> None:
        """Hardware mode, discovered library, error-level logging."""
        ns = build_parser().parse_args([])
        assert ns.mode == "hardware"
        assert ns.library is None
        assert ns.log_level == "error"
        assert ns.log_json is False
        assert ns.command is None
        assert ns.args == []

    def test_negative_numbers_pass_through(self) -> None:
        """A leading minus on a command argument isn't taken as an option."""
        ns = build_parser().parse_args(["set_zoom_rel", "-5", "1", "3"])
        assert ns.command == "set_zoom_rel"
        assert ns.args == ["-5", "1", "3"]

    def test_options_before_command(self) -> None:
        ns = build_parser().parse_args(
            ["--mode", "digital_twin", "--log-level", "debug", "--log-json", "get_zoom_abs"]
        )
        assert ns.mode == "digital_twin"
        assert ns.log_level == "debug"
        assert ns.log_json is True
        assert ns.command == "get_zoom_abs"

    def test_invalid_mode_exits(self) -> None:
        """argparse rejects unknown modes with its own exit code 2."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--mode", "simulator"])
        assert exc_info.value.code == 2


class TestCommandArguments:
    """Handling of an end-of-options marker after the command."""

    def test_leading_marker_dropped(self) -> None:
        assert command_arguments(["--", "-5", "1", "3"]) == ["-5", "1", "3"]

    def test_only_one_marker_dropped(self) -> None:
        assert command_arguments(["--", "--"]) == ["--"]

    def test_later_marker_kept(self) -> None:
        assert command_arguments(["-5", "--", "3"]) == ["-5", "--", "3"]

    def test_plain_arguments_unchanged(self) -> None:
        assert command_arguments(("300",)) == ["300"]
        assert command_arguments([]) == []


# =========================================================================
# main - success paths
# =========================================================================


class TestMainSuccess:
    """End-to-end runs with the digital twin."""

    def test_usage(self, capsys) -> None:
        """No command prints usage and exits 0."""
        assert main(TWIN) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out == USAGE
        assert captured.err == ""

    def test_get_zoom_abs(self, capsys) -> None:
        """Verifies a full get_zoom_abs run through the CLI.

        Arrangement:
            Digital twin mode, default camera (zoom 100..500).

        Action:
            main(["--mode", "digital_twin", "get_zoom_abs"]).

        Assertion Strategy:
            - Exit code 0.
            - Diagnostics then min/max/cur on stdout.
            - Nothing on stderr at the default log level.
        """
        assert main([*TWIN, "get_zoom_abs"]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out.startswith("DEVICE CONFIGURATION")
        assert _results(captured.out) == ["min: 100", "max: 500", "cur: 100"]
        assert captured.err == ""

    def test_set_zoom_rel_negative(self, capsys) -> None:
        assert main([*TWIN, "set_zoom_rel", "-5", "1", "3"]) == EXIT_OK
        assert _results(capsys.readouterr().out) == [
            "set: zoom_rel: -5, digital_zoom: 1, speed: 3",
            "cur: zoom_rel: -5, digital_zoom: 1, speed: 3",
        ]

    @pytest.mark.parametrize(
        ("args", "expected"),
        [
            (["set_zoom_abs", "--", "300"], ["set: 300", "cur: 300"]),
            (
                ["set_zoom_rel", "--", "-5", "1", "3"],
                [
                    "set: zoom_rel: -5, digital_zoom: 1, speed: 3",
                    "cur: zoom_rel: -5, digital_zoom: 1, speed: 3",
                ],
            ),
        ],
    )
    def test_end_of_options_marker(
        self, capsys, args: list[str], expected: list[str]
    ) -> None:
        """A "--" after the command behaves as if it were absent."""
        assert main([*TWIN, *args]) == EXIT_OK
        captured = capsys.readouterr()
        assert _results(captured.out) == expected
        assert captured.err == ""

    def test_unknown_command_exits_zero(self, capsys) -> None:
        """Unknown commands are reported but don't fail the run."""
        assert main([*TWIN, "frobnicate"]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.err == "Unknown command: frobnicate\n"

    def test_debug_logging_goes_to_stderr(self, capsys) -> None:
        """Log records never mix with command output on stdout."""
        assert main([*TWIN, "--log-level", "debug", "get_zoom_abs"]) == EXIT_OK
        captured = capsys.readouterr()
        assert "Running command" in captured.err
        assert "command=get_zoom_abs" in captured.err
        assert "command_args=[]" in captured.err
        assert "Running command" not in captured.out

    def test_json_logging(self, capsys) -> None:
        """--log-json emits one JSON object per record."""
        assert main([*TWIN, "--log-level", "debug", "--log-json", "get_zoom_abs"]) == EXIT_OK
        lines = [line for line in capsys.readouterr().err.splitlines() if line]
        records = [json.loads(line) for line in lines]
        running = [r for r in records if r["message"] == "Running command"]
        assert running[0]["command"] == "get_zoom_abs"
        assert running[0]["command_args"] == []
        assert logging.getLogger("visca2uvc").level == logging.DEBUG


# =========================================================================
# main - failures
# =========================================================================


class TestMainFailures:
    """Exit codes and stderr messages on failure."""

    def test_argument_error(self, capsys) -> None:
        """Bad arguments exit 2 and print nothing on stdout."""
        assert main([*TWIN, "set_zoom_abs", "abc"]) == EXIT_USAGE
        captured = capsys.readouterr()
        assert captured.err == "Cannot parse as uint16: abc\n"
        assert captured.out == ""

    def test_argument_count_error(self, capsys) -> None:
        assert main([*TWIN, "set_zoom_rel", "1"]) == EXIT_USAGE
        assert capsys.readouterr().err == "set_zoom_rel needs 3 arguments.\n"

    def test_control_error(self, capsys) -> None:
        """Device rejections exit 1 with the operation and reason."""
        assert main([*TWIN, "set_zoom_abs", "9000"]) == EXIT_FAILURE
        assert capsys.readouterr().err == "set_zoom_abs: Pipe error\n"

    def test_no_device(self, capsys) -> None:
        absent = DigitalTwinUvcLibrary(DigitalTwinConfig(device_present=False))
        with patch("visca2uvc.cli.DriverFactory") as factory:
            factory.return_value.create_library.return_value = absent
            assert main([*TWIN, "get_zoom_abs"]) == EXIT_FAILURE
        assert capsys.readouterr().err == "find_device: No such device\n"

    def test_mid_sequence_failure_keeps_earlier_output(self, capsys) -> None:
        """Lines printed before a failure stay on stdout."""
        stalling = DigitalTwinUvcLibrary(
            DigitalTwinConfig(faults={"get_zoom_abs:CUR": UvcError.PIPE})
        )
        with patch("visca2uvc.cli.DriverFactory") as factory:
            factory.return_value.create_library.return_value = stalling
            assert main([*TWIN, "get_zoom_abs"]) == EXIT_FAILURE
        captured = capsys.readouterr()
        assert _results(captured.out) == ["min: 100", "max: 500"]
        assert captured.err == "get_zoom_abs: Pipe error\n"
        assert stalling.outstanding() == {"context": 0, "device": 0, "handle": 0}

    def test_missing_library(self, capsys, tmp_path) -> None:
        """A bad --library path is an unexpected exception, exit 1."""
        missing = tmp_path / "libuvc.so"
        assert main(["--library", str(missing), "get_zoom_abs"]) == EXIT_FAILURE
        assert capsys.readouterr().err == f"Exception: libuvc library not found at {missing}\n"

    def test_library_passed_to_factory(self, tmp_path) -> None:
        """--library and --mode reach the driver configuration."""
        with patch("visca2uvc.cli.DriverFactory") as factory:
            factory.return_value.create_library.return_value = DigitalTwinUvcLibrary()
            main(["--library", str(tmp_path), "get_zoom_abs"])
        config = factory.call_args.args[0]
        assert config.library_path == tmp_path
        assert config.mode.value == "hardware"
