"""
Test Command Line Module
=======================

Tests for the non-interactive CLI modes.
"""

import logging
import pytest
import yaml
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

import main


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.setenv("PORTAL_CHAT_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("PORTAL_CHAT_LLM_API_KEY", raising=False)


@pytest.fixture(autouse=True)
def fresh_logging(monkeypatch):
    """Each main() call sets up logging from scratch; handlers are restored after."""
    import core.logging as logging_module

    root = logging.getLogger(logging_module.ROOT_LOGGER_NAME)
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.setattr(logging_module, "_configured", False)
    monkeypatch.setattr(logging_module, "_file_logging", False)
    yield
    for added in root.handlers:
        if added not in saved_handlers:
            added.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestMain:
    """Tests for main()."""

    def test_validate_bundled_rules(self, capsys):
        assert main.main(["--validate-rules"]) == 0

        out = capsys.readouterr().out
        assert "Rule file OK: bundled defaults" in out
        assert "general:" in out

    def test_validate_broken_rules(self, tmp_path, capsys):
        """A rule file without fallback exits with an error."""
        path = tmp_path / "rules.yaml"
        path.write_text("- keywords: {any: [password]}\n  response: R2\n")

        assert main.main(["--validate-rules", str(path)]) == 1
        assert "Error:" in capsys.readouterr().out

    def test_list_prompts(self, capsys):
        assert main.main(["--list-prompts"]) == 0

        out = capsys.readouterr().out
        assert "Your account:" in out
        assert "Which of my funds held are ESG funds?" in out

    def test_ask(self, capsys):
        """--ask prints the new thread."""
        assert main.main(["--ask", "I forgot my password"]) == 0

        out = capsys.readouterr().out
        assert "You: I forgot my password" in out
        assert "Forgot password" in out

    def test_chat(self, monkeypatch, capsys):
        """The chat loop answers until 'quit'."""
        lines = iter(["I forgot my password", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

        assert main.main(["--chat"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("Assistant: Hello Gordon!")
        assert "Forgot password" in out


    def test_writes_log_file(self, tmp_path):
        """Logs go to the config directory's log folder."""
        assert main.main(["--validate-rules"]) == 0

        logging.getLogger("portal_chat.tests").warning("after startup")

        assert "after startup" in (tmp_path / "logs" / "portal-chat.log").read_text()

    def test_status_without_key(self, capsys):
        assert main.main(["--status"]) == 0

        out = capsys.readouterr().out
        assert "Provider: gemini" in out
        assert "API Key: Not Set" in out
        assert "Connection" not in out

    def test_status_checks_connection(self, monkeypatch, capsys):
        """With a key the provider's availability is reported."""
        checked = []

        class Unreachable:
            def is_available(self):
                checked.append(True)
                return False

        monkeypatch.setenv("PORTAL_CHAT_LLM_API_KEY", "test-key")
        monkeypatch.setattr("llm.factory.create_provider", lambda config: Unreachable())

        assert main.main(["--status"]) == 0

        out = capsys.readouterr().out
        assert "API Key: Set" in out
        assert "Connection: Failed" in out
        assert checked == [True]

    def test_init_config(self, monkeypatch, tmp_path, capsys):
        """The written file loads back and never contains the key."""
        monkeypatch.setenv("PORTAL_CHAT_LLM_API_KEY", "secret-key")
        monkeypatch.setenv("PORTAL_CHAT_CHAT_USER_NAME", "Ada")

        assert main.main(["--init-config"]) == 0

        path = tmp_path / "config.yaml"
        assert f"Configuration saved to {path}" in capsys.readouterr().out
        data = yaml.safe_load(path.read_text())
        assert data["chat"]["user_name"] == "Ada"
        assert "api_key" not in data["llm"]
        assert "secret-key" not in path.read_text()

    def test_init_config_path(self, tmp_path):
        target = tmp_path / "custom" / "chat.yaml"

        assert main.main(["--init-config", str(target)]) == 0
        assert yaml.safe_load(target.read_text())["llm"]["provider"] == "gemini"


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
