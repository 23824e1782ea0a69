from taskboard.config import Settings
from scripts.validate_env import EnvironmentValidator


def test_valid_environment_passes(capsys):
    validator = EnvironmentValidator(Settings(_env_file=None, database_url="sqlite://", bcrypt_rounds=12))

    assert validator.validate_all() is True
    assert "Overall: PASS" in capsys.readouterr().out
    assert any("placeholder password" in w for w in validator.warnings)


def test_bad_seed_options_fail(capsys):
    validator = EnvironmentValidator(Settings(_env_file=None, database_url="sqlite://", seed_batch_size=0))

    assert validator.validate_all() is False
    assert any("batch_size" in e for e in validator.errors)
    assert "Overall: FAIL" in capsys.readouterr().out


def test_unreachable_database_fails():
    validator = EnvironmentValidator(
        Settings(_env_file=None, database_url="sqlite:////nonexistent-dir/taskboard.db")
    )

    validator.validate_database_connection()

    assert validator.errors and "Database connection failed" in validator.errors[0]
