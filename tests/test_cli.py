"""
Tests for the loyalty CLI.
"""

from typer.testing import CliRunner

from loyalty_api.cli import app
from loyalty_api.keys import SuiKeypair, encode_sui_private_key

runner = CliRunner()

SEED = bytes(range(32))


def test_generate_wallet_round_trip() -> None:
    result = runner.invoke(app, ["generate-wallet"])

    assert result.exit_code == 0
    lines = dict(line.split(":", 1) for line in result.output.strip().splitlines())
    address = lines["Address"].strip()
    private_key = lines["Private key"].strip()

    assert private_key.startswith("suiprivkey1")
    assert SuiKeypair.from_private_key(private_key).to_sui_address() == address


def test_address_from_env(monkeypatch) -> None:
    monkeypatch.setenv("SUI_PRIVATE_KEY", encode_sui_private_key(SEED))

    result = runner.invoke(app, ["address"])

    assert result.exit_code == 0
    assert result.output.strip() == SuiKeypair(SEED).to_sui_address()


def test_address_from_env_file(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("SUI_PRIVATE_KEY", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text(f"SUI_PRIVATE_KEY={encode_sui_private_key(SEED)}\n")

    result = runner.invoke(app, ["address", "--config", str(env_file)])

    assert result.exit_code == 0
    assert result.output.strip() == SuiKeypair(SEED).to_sui_address()


def test_address_rejects_bad_key(monkeypatch) -> None:
    monkeypatch.setenv("SUI_PRIVATE_KEY", "garbage!!")

    result = runner.invoke(app, ["address"])

    assert result.exit_code == 1


def test_balance_requires_configuration(tmp_path, monkeypatch) -> None:
    for name in ("SUI_PRIVATE_KEY", "PACKAGE_ID", "ADMIN_CAP_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["balance"])

    assert result.exit_code == 1


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "loyalty-api v" in result.output
