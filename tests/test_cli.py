# tests/test_cli.py
"""
Profiles, output writing and the command line, each against a throwaway
workspace under tmp_path.
"""

from __future__ import annotations

import pytest
import sympy

from hugefib import config
from hugefib.cli import main
from hugefib.fmt import abbr_digits
from hugefib.output_manager import ResultWriter
from hugefib.runtime import APPLY, CFG
from hugefib.runtime import current as rt_current
from hugefib.runtime import reset as rt_reset
from hugefib.utility import UserInputError
from hugefib.workspace import ensure_workspace_seeded, workspace_dir

F100 = 354224848179261915075


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch):
    monkeypatch.setenv("HUGEFIB_HOME", str(tmp_path))
    rt_reset()
    ensure_workspace_seeded()
    yield tmp_path
    rt_reset()


# ---------- workspace & profiles ----------------------------------------------


def test_workspace_is_seeded_with_packaged_profiles(workspace):
    assert workspace_dir() == workspace.resolve()
    names = {p.stem for p in (workspace / "profiles").glob("*.toml")}
    assert {"default", "sequential", "binary"} <= names
    assert (workspace / "results").is_dir()


def test_load_settings_strips_profile_metadata():
    s = config.load_settings("sequential")
    assert s.name == "sequential"
    assert "Single worker" in s.description
    assert "_PROFILE_" not in s.as_dict()
    APPLY(s)
    assert CFG("ENGINE.WORKERS") == 1
    assert CFG("ENGINE.NOPE", "fallback") == "fallback"


def test_unknown_and_broken_profiles(workspace):
    with pytest.raises(UserInputError):
        config.load_settings("does-not-exist")
    (workspace / "profiles" / "broken.toml").write_text("[ENGINE\nWORKERS = ", encoding="utf-8")
    with pytest.raises(UserInputError, match="broken.toml"):
        config.load_settings("broken")


def test_ctx_settings_precedence():
    APPLY(config.load_settings("default"))
    assert config.ctx_settings() == {"workers": None, "mul_threshold": 200_000, "str_threshold": 50_000}
    got = config.ctx_settings(workers=3, mul_threshold=512)
    assert got == {"workers": 3, "mul_threshold": 512, "str_threshold": 50_000}


@pytest.mark.parametrize("kwargs", [
    {"mul_threshold": 4},
    {"str_threshold": 0},
    {"workers": -2},
])
def test_ctx_settings_rejects_out_of_range(kwargs):
    with pytest.raises(UserInputError):
        config.ctx_settings(**kwargs)


def test_output_format_validation():
    assert config.output_format("BINARY") == "binary"
    with pytest.raises(UserInputError):
        config.output_format("hex")


def test_current_profile_is_remembered():
    assert config.read_current_profile() is None
    config.write_current_profile("binary.toml")
    assert config.read_current_profile() == "binary"


# ---------- result writer -----------------------------------------------------


def test_writer_directory_mode_never_overwrites(workspace):
    first = ResultWriter("out/", 12, "decimal").write_text("144")
    second = ResultWriter("out/", 12, "decimal").write_text("144")
    assert first.endswith("F12.txt")
    assert second.endswith("F12_2.txt")
    assert (workspace / "out" / "F12.txt").read_text(encoding="utf-8") == "144\n"


def test_writer_disabled_without_target():
    w = ResultWriter("", 5, "decimal")
    assert not w.enabled
    assert w.write_text("5") is None
    assert not ResultWriter("x.txt", 5, "none").enabled


def test_writer_rejects_forbidden_names():
    with pytest.raises(ValueError):
        ResultWriter("evil.py", 5, "decimal")


# ---------- command line ------------------------------------------------------


def test_cli_reports_time_and_bit_length(capsys):
    assert main(["100"]) == 0
    out = capsys.readouterr().out
    assert "F(100) calculated in" in out
    assert "Result length: 69 bits" in out
    assert "Decimal digits: 21" in out


def test_cli_writes_decimal_file(workspace):
    assert main(["50", "--output", "res/", "--quiet"]) == 0
    assert (workspace / "res" / "F50.txt").read_text(encoding="utf-8") == "12586269025\n"


def test_cli_writes_twos_complement_bytes(workspace):
    target = workspace / "f100.bin"
    assert main(["100", "--output", str(target), "--format", "binary", "--quiet"]) == 0
    assert target.read_bytes() == F100.to_bytes(9, "big", signed=True)


def test_cli_engine_flags(workspace):
    args = ["5000", "--workers", "3", "--mul-threshold", "256", "--str-threshold", "128",
            "--output", "f.txt", "--quiet"]
    assert main(args) == 0
    digits = (workspace / "f.txt").read_text(encoding="utf-8").strip()
    assert len(digits) == 1045
    assert digits == str(sympy.fibonacci(5000))


def test_cli_profile_positional_is_remembered():
    assert main(["sequential", "30", "--quiet"]) == 0
    assert config.read_current_profile() == "sequential"


def test_cli_verify_with_gmpy2(capsys):
    assert main(["1000", "--verify"]) == 0
    assert "Verified against gmpy2" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [
    ["-5"],
    ["nosuch", "10"],
    ["default", "ten"],
    ["10", "--mul-threshold", "2"],
    ["10", "--output", "bad.py"],
])
def test_cli_user_errors_exit_2(argv, capsys):
    assert main(argv) == 2
    assert "Error" in capsys.readouterr().err


def test_cli_commands(capsys, workspace):
    assert main(["profiles"]) == 0
    out = capsys.readouterr().out
    assert "default" in out and "sequential" in out
    assert main(["where"]) == 0
    assert str(workspace.resolve()) in capsys.readouterr().out
    assert main(["init"]) == 0


def test_cli_without_index_prints_usage(capsys):
    assert main([]) == 2
    assert "usage" in capsys.readouterr().err.lower()


def test_cli_user_errors_share_one_prefix(capsys):
    assert main(["default", "ten"]) == 2
    err = capsys.readouterr().err
    assert "Error:" in err
    assert "'ten' is not an integer index" in err


# ---------- preview & runtime -------------------------------------------------


@pytest.mark.parametrize("head,tail,expected", [
    (3, 2, "123…90"),
    (2, 0, "12…"),
    (0, 0, "…"),
])
def test_abbr_digits_never_dumps_the_body(head, tail, expected):
    assert abbr_digits("1234567890" * 3, head=head, tail=tail) == expected


def test_abbr_digits_keeps_short_values_and_sign():
    assert abbr_digits("12345", head=3, tail=3) == "12345"
    assert abbr_digits("-1234567890", head=2, tail=2) == "-12…90"


def test_cli_tiny_preview_setting(workspace, capsys):
    (workspace / "profiles" / "tiny.toml").write_text(
        "[BEHAVIOUR]\nPROGRESS = false\nMAX_PREVIEW_DIGITS = 0\n", encoding="utf-8"
    )
    assert main(["tiny", "300"]) == 0
    digits = str(sympy.fibonacci(300))
    out = capsys.readouterr().out
    assert f"Value: {digits[0]}…{digits[-1]}" in out
    assert digits not in out


def test_apply_syncs_flags_and_dotted_lookup(workspace):
    (workspace / "profiles" / "loud.toml").write_text(
        '[_PROFILE_]\nname = "loud"\n\n[BEHAVIOUR]\nDEBUG = true\nPROGRESS = false\n', encoding="utf-8"
    )
    APPLY(config.load_settings("loud"))
    rt = rt_current()
    assert rt.profile_name == "loud"
    assert rt.debug is True
    assert rt.progress is False
    assert CFG("BEHAVIOUR.DEBUG") is True
    assert CFG("BEHAVIOUR.DEBUG.DEEPER", "x") == "x"
    assert CFG("ENGINE") == {}
