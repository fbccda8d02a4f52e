"""Tests for the server entry point."""

import main
from qualification_engine.api import endpoints


class TestMain:

    def test_threshold_table_flag_reaches_app_engine(self, monkeypatch):
        """The app engine built after argument parsing uses the chosen table."""
        monkeypatch.setenv("QUALIFICATION_THRESHOLD_TABLE", "standard")
        monkeypatch.setattr("sys.argv", ["main.py", "--threshold-table", "enhanced"])
        monkeypatch.setattr(main, "setup_logging", lambda *args, **kwargs: None)

        served = {}

        def fake_run(app, **kwargs):
            served["app"] = app
            served["table"] = endpoints.get_default_engine().config.thresholds.name

        monkeypatch.setattr(main.uvicorn, "run", fake_run)
        main.main()

        assert served["app"] == "qualification_engine.api.endpoints:app"
        assert served["table"] == "enhanced"

    def test_default_table_from_environment(self, monkeypatch):
        monkeypatch.setenv("QUALIFICATION_THRESHOLD_TABLE", "enhanced")
        monkeypatch.setattr("sys.argv", ["main.py"])
        monkeypatch.setattr(main, "setup_logging", lambda *args, **kwargs: None)

        served = {}
        monkeypatch.setattr(
            main.uvicorn,
            "run",
            lambda app, **kwargs: served.update(table=endpoints.get_default_engine().config.thresholds.name),
        )
        main.main()

        assert served["table"] == "enhanced"
