from core.config import AppSettings, ExistenceCheckMode, write_user_env_vars


def test_api_root_appends_suffix_once():
    assert AppSettings(_env_file=None, MEDICAL_API_BASE_URL="http://host:3000").api_root == "http://host:3000/api-ia"
    assert AppSettings(_env_file=None, MEDICAL_API_BASE_URL="http://host:3000/").api_root == "http://host:3000/api-ia"
    assert AppSettings(_env_file=None, MEDICAL_API_BASE_URL="http://host/api-ia").api_root == "http://host/api-ia"


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("MEDICAL_API_BASE_URL", "http://gnuhealth.local")
    monkeypatch.setenv("MEDICAL_API_KEY", "abc")
    monkeypatch.setenv("MEDADMIN_EXISTENCE_CHECK", "strict")
    monkeypatch.setenv("MEDADMIN_APPROVAL_PRICE_THRESHOLD", "250")

    settings = AppSettings(_env_file=None)

    assert settings.api_root == "http://gnuhealth.local/api-ia"
    assert settings.api_key == "abc"
    assert settings.existence_check is ExistenceCheckMode.STRICT
    assert settings.approval_price_threshold == 250


def test_defaults(monkeypatch):
    for name in ("MEDICAL_API_BASE_URL", "MEDADMIN_API_BASE_URL", "MEDICAL_API_KEY", "MEDADMIN_API_KEY"):
        monkeypatch.delenv(name, raising=False)

    settings = AppSettings(_env_file=None)

    assert settings.api_base_url == "http://localhost:3000"
    assert settings.api_key is None
    assert settings.existence_check is ExistenceCheckMode.PERMISSIVE
    assert settings.approval_price_threshold == 1000.0


def test_write_user_env_vars_merges(tmp_path):
    env_path = tmp_path / "medadmin" / ".env"
    env_path.parent.mkdir()
    env_path.write_text("# old\nMEDICAL_API_KEY='old'\nOTHER=1\n", encoding="utf-8")

    write_user_env_vars({"MEDICAL_API_KEY": "new", "MEDICAL_API_BASE_URL": "http://x"}, env_path=env_path)

    lines = env_path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("#")
    assert lines[1:] == ["MEDICAL_API_BASE_URL=http://x", "MEDICAL_API_KEY=new", "OTHER=1"]
