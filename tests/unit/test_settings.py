from link_worker.app.config.settings import Settings


def test_defaults_match_worker_baseline(monkeypatch):
    for name in ("WORKER_COUNT", "POLL_TIMEOUT_SECONDS", "FETCH_TIMEOUT_SECONDS", "QUEUE_KEY"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.worker_count == 3
    assert settings.poll_timeout_seconds == 5.0
    assert settings.fetch_timeout_seconds == 30.0
    assert settings.queue_key == "link_metadata:queue"
    assert settings.processing_key == "link_metadata:queue:processing"
    assert settings.health_port == 0


def test_environment_variables_override_defaults(monkeypatch):
    monkeypatch.setenv("WORKER_COUNT", "8")
    monkeypatch.setenv("QUEUE_BACKEND", "inmemory")
    monkeypatch.setenv("LOG_JSON", "true")

    settings = Settings(_env_file=None)

    assert settings.worker_count == 8
    assert settings.queue_backend == "inmemory"
    assert settings.log_json is True


def test_field_names_are_accepted_as_keyword_arguments():
    assert Settings(_env_file=None, worker_count=5).worker_count == 5
