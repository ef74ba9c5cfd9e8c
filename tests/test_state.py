"""Tests for the application-state layer."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from plistkit.core.document import load, save
from plistkit.core.navigate import get, get_string
from plistkit.core.types import Kind, from_typed
from plistkit.state import (
    AppDocument,
    DataDocumentError,
    DefaultSettings,
    RemoteMonitor,
    SettingsError,
    StatusTracker,
    check_default_settings,
    find_data_documents,
    normalize_type,
)

NOW = datetime(2021, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

SETTINGS = {
    "userAgent": "Mozilla/5.0",
    "logFile": "/tmp/plistkit.log",
    "logFileMaxSizeInMBs": 10,
    "maxNoOfLogsToKeep": 5,
    "statusPlistPath": "/tmp/status.plist",
    "emailReports": False,
    "smtpServer": "smtp.example.com",
    "fromAddress": "from@example.com",
    "toAddress": "to@example.com",
    "subjectPrefix": "[importer]",
    "makecatalogs": True,
    "version": "1.0",
}


def write_app(directory: Path, filename: str = "Firefox.plist", **overrides) -> Path:
    section = {
        "URLToMonitor": "https://example.com/download?a=1&amp;b=2",
        "name": "Firefox",
        "type": "Static",
        "itemToImport": "Firefox.app",
    }
    section.update(overrides)
    path = directory / filename
    save(from_typed({"autoMunkiImporter": section}), path)
    return path


class TestSettings:
    """Test the default settings document."""

    def test_complete_settings(self):
        doc = from_typed(SETTINGS)
        check_default_settings(doc)
        settings = DefaultSettings.from_document(doc)
        assert settings.user_agent == "Mozilla/5.0"
        assert settings.log_max_size_mb == 10
        assert settings.email_reports is False
        assert settings.makecatalogs is True
        assert settings.status_file == Path("/tmp/status.plist")

    def test_missing_and_placeholder_keys(self):
        """Test that every bad key is named."""
        values = dict(SETTINGS, smtpServer="REPLACE_ME", toAddress="")
        del values["version"]
        with pytest.raises(SettingsError) as excinfo:
            check_default_settings(from_typed(values))
        assert excinfo.value.keys == ["smtpServer", "toAddress", "version"]

    def test_non_numeric_size(self):
        """Test that a size setting that is not a number names its key."""
        with pytest.raises(SettingsError) as excinfo:
            DefaultSettings.from_document(from_typed(dict(SETTINGS, logFileMaxSizeInMBs="ten")))
        assert excinfo.value.keys == ["logFileMaxSizeInMBs"]

    def test_overlay(self, tmp_path):
        """Test per-application overrides."""
        app = AppDocument.load(
            write_app(tmp_path, userAgent="Custom", emailReports=True, emailTo="ops@example.com")
        )
        settings = DefaultSettings.from_document(from_typed(SETTINGS)).overlay(app)
        assert settings.user_agent == "Custom"
        assert settings.email_reports is True
        assert settings.to_address == "ops@example.com"
        assert settings.from_address == "from@example.com"


class TestAppDocument:
    """Test data document validation and accessors."""

    def test_normalize_type(self):
        assert normalize_type("Sparkle") == "sparkle"
        with pytest.raises(DataDocumentError):
            normalize_type("ftp")

    def test_load(self, tmp_path):
        app = AppDocument.load(write_app(tmp_path))
        assert app.name == "Firefox"
        assert app.monitor_type == "static"
        assert app.url == "https://example.com/download?a=1&b=2"
        assert app.disabled is False
        assert app.modified_date is None
        assert app.import_history() == {}

    def test_missing_required_key(self, tmp_path):
        with pytest.raises(DataDocumentError, match="itemToImport"):
            AppDocument.load(write_app(tmp_path, itemToImport=""))

    def test_dynamic_needs_regex(self, tmp_path):
        with pytest.raises(DataDocumentError, match="downloadLinkRegex"):
            AppDocument.load(write_app(tmp_path, type="dynamic"))
        app = AppDocument.load(write_app(tmp_path, type="dynamic", downloadLinkRegex=r"\.dmg$"))
        assert app.monitor_type == "dynamic"

    def test_not_a_data_document(self, tmp_path):
        path = tmp_path / "other.plist"
        save(from_typed({"something": "else"}), path)
        with pytest.raises(DataDocumentError):
            AppDocument.load(path)
        with pytest.raises(DataDocumentError):
            AppDocument.load(tmp_path / "missing.plist")

    def test_disabled_and_modified_date(self, tmp_path):
        app = AppDocument.load(write_app(tmp_path, disabled=True, modifiedDate=NOW))
        assert app.disabled is True
        assert app.modified_date == NOW


class TestStatusTracker:
    """Test status and history recording."""

    def test_open_missing_starts_empty(self, tmp_path):
        tracker = StatusTracker.open(tmp_path / "status.plist")
        assert tracker.status_doc == from_typed({})

    def test_update_status(self, tmp_path):
        """Test that both documents are updated and saved."""
        app = AppDocument.load(write_app(tmp_path))
        status_path = tmp_path / "status.plist"
        tracker = StatusTracker.open(status_path)
        tracker.update_status(app, "No new version found.", now=NOW)

        data = load(app.path)
        assert get_string(data, "autoMunkiImporter", "lastStatus") == "No new version found."
        assert get(data, "autoMunkiImporter", "lastRunTime").payload == NOW

        status = load(status_path)
        assert get_string(status, "Firefox", "lastStatus") == "No new version found."
        assert get(status, "Firefox", "lastRunTime").kind is Kind.DATE

    def test_record_new_version(self, tmp_path):
        app = AppDocument.load(write_app(tmp_path))
        status_path = tmp_path / "status.plist"
        tracker = StatusTracker.open(status_path)
        modified = datetime(2021, 5, 1, tzinfo=timezone.utc)
        tracker.record_new_version(
            app,
            "89.0",
            modified,
            "https://example.com/initial",
            "https://cdn.example.com/final.dmg",
            "apps/Firefox-89.0.plist",
            now=NOW,
        )

        reloaded = AppDocument.load(app.path)
        history = reloaded.import_history()
        assert history["89.0"] == {
            "modifiedDate": int(modified.timestamp()),
            "importDate": int(NOW.timestamp()),
            "InitialURL": "https://example.com/initial",
            "finalURL": "https://cdn.example.com/final.dmg",
            "pkginfoPath": "apps/Firefox-89.0.plist",
        }
        assert reloaded.last_status == (
            "v89.0 imported into Munki - PkgInfo Path: apps/Firefox-89.0.plist"
        )
        status = load(status_path)
        assert get_string(status, "Firefox", "Import History", "89.0", "finalURL") == (
            "https://cdn.example.com/final.dmg"
        )

    def test_update_last_modified_date(self, tmp_path):
        app = AppDocument.load(write_app(tmp_path))
        tracker = StatusTracker.open(tmp_path / "status.plist")
        tracker.update_last_modified_date(app, NOW)
        assert AppDocument.load(app.path).modified_date == NOW


class TestDiscovery:
    """Test finding data documents."""

    def test_directory_walk(self, tmp_path):
        (tmp_path / "sub").mkdir()
        write_app(tmp_path, "b.plist")
        write_app(tmp_path / "sub", "a.plist")
        write_app(tmp_path, "_DefaultSettings.plist")
        (tmp_path / "notes.txt").write_text("x")

        assert find_data_documents(tmp_path) == [
            tmp_path / "b.plist",
            tmp_path / "sub" / "a.plist",
        ]

    def test_single_file(self, tmp_path):
        path = write_app(tmp_path)
        assert find_data_documents(path) == [path]

    def test_missing_path(self, tmp_path):
        assert find_data_documents(tmp_path / "missing") == []


def make_monitor(handler) -> RemoteMonitor:
    return RemoteMonitor("TestAgent/1.0", client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestRemoteMonitor:
    """Test remote change detection with a mock transport."""

    def test_last_modified(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["agent"] = request.headers["User-Agent"]
            return httpx.Response(200, headers={"Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT"})

        monitor = make_monitor(handler)
        assert monitor.last_modified("https://example.com/app.dmg") == datetime(
            2015, 10, 21, 7, 28, 0, tzinfo=timezone.utc
        )
        assert seen == {"method": "HEAD", "agent": "TestAgent/1.0"}

    def test_follows_redirects(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/latest":
                return httpx.Response(302, headers={"Location": "https://cdn.example.com/app-2.dmg"})
            return httpx.Response(200, headers={"Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT"})

        monitor = make_monitor(handler)
        assert monitor.final_url("https://example.com/latest") == "https://cdn.example.com/app-2.dmg"

    def test_missing_header_and_errors(self):
        monitor = make_monitor(lambda request: httpx.Response(200))
        assert monitor.last_modified("https://example.com/a") is None

        monitor = make_monitor(lambda request: httpx.Response(404))
        assert monitor.last_modified("https://example.com/a") is None

    def test_has_changed(self, tmp_path):
        monitor = make_monitor(lambda request: httpx.Response(200))
        app = AppDocument.load(write_app(tmp_path, modifiedDate=NOW))
        later = datetime(2022, 1, 1, tzinfo=timezone.utc)
        assert monitor.has_changed(app, later) is True
        assert monitor.has_changed(app, NOW) is False
        assert monitor.has_changed(app, NOW, ignore_mod_date=True) is True
        assert monitor.has_changed(app, None) is True

        fresh = AppDocument.load(write_app(tmp_path, "fresh.plist"))
        assert monitor.has_changed(fresh, NOW) is True
