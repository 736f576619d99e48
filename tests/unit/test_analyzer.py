# Unit tests for task analysis and the LLM clients
from datetime import datetime, time
from unittest.mock import MagicMock, Mock, patch

import pytest

from TaskPilot.agents.base import AnthropicWrapper, LlmWrapper, get_llm
from TaskPilot.agents.config import AnalyzerConfig, SystemConfig, get_analyzer_config
from TaskPilot.agents.prompt_builder import PromptBuilder
from TaskPilot.agents.task_analyzer import (
    TaskAnalyzer,
    extract_json,
    format_duration,
    format_task_summary,
)
from TaskPilot.scheduling.slot_suggester import SlotSuggester
from TaskPilot.shared.errors import AnalysisError
from TaskPilot.shared.models import AnalysisStatus, MentalLoad, TaskData, TaskType
from tests.utils.factories import NOW

VALID_REPLY = (
    '{"taskType": "study", "estimatedDuration": 90, "mentalLoad": "high", '
    '"deadline": "2024-01-03 17:00", "priority": 0.7, "reasoning": "Exam prep"}'
)


@pytest.mark.unit
class TestExtractJson:
    def test_bare_object(self):
        assert extract_json(VALID_REPLY)["taskType"] == "study"

    def test_fenced_block(self):
        reply = f"Here you go:\n```json\n{VALID_REPLY}\n```\nGood luck!"
        assert extract_json(reply)["estimatedDuration"] == 90

    def test_prose_around_object(self):
        reply = f"Sure. {VALID_REPLY} Let me know if that helps."
        assert extract_json(reply)["priority"] == 0.7

    def test_no_json(self):
        with pytest.raises(ValueError, match="No JSON found"):
            extract_json("I cannot help with that")


@pytest.mark.unit
class TestTaskAnalyzer:
    """Test analysis results for good, bad and failing model replies"""

    def test_ok_result(self, mock_llm):
        analyzer = TaskAnalyzer(mock_llm)
        result = analyzer.analyze("Write quarterly report", NOW)

        assert result.status == AnalysisStatus.OK
        task = result.task
        assert task.description == "Write quarterly report"
        assert task.task_type == TaskType.WORK
        assert task.estimated_duration == 60
        assert task.mental_load == MentalLoad.HIGH
        assert task.deadline is None
        assert task.priority == 0.8
        assert task.reasoning == "Needs focus"
        assert analyzer.metrics["total_llm_calls"] == 1

    def test_request_uses_json_mode_and_prompt(self, mock_llm):
        TaskAnalyzer(mock_llm).analyze("Call the dentist", NOW)
        messages = mock_llm.chat.call_args.args[0]
        assert mock_llm.chat.call_args.kwargs["json_mode"] is True
        assert messages[0]["role"] == "system"
        assert "Monday January 01, 2024" in messages[0]["content"]
        assert '"Call the dentist"' in messages[1]["content"]

    def test_deadline_parsed(self, mock_llm):
        mock_llm.chat.return_value = f"```json\n{VALID_REPLY}\n```"
        task = TaskAnalyzer(mock_llm).analyze("Study for exam").task
        assert task.deadline == datetime(2024, 1, 3, 17, 0)
        assert task.task_type == TaskType.STUDY

    def test_mixed_case_enums(self, mock_llm):
        mock_llm.chat.return_value = VALID_REPLY.replace('"study"', '"Study"').replace(
            '"high"', '"HIGH"'
        )
        result = TaskAnalyzer(mock_llm).analyze("Study")
        assert result.status == AnalysisStatus.OK
        assert result.task.mental_load == MentalLoad.HIGH

    def test_off_list_mental_load_is_unset(self, mock_llm):
        mock_llm.chat.return_value = (
            '{"taskType": "work", "estimatedDuration": 120, "mentalLoad": "very high", '
            '"deadline": null, "priority": 0.9, "reasoning": "Big push"}'
        )
        result = TaskAnalyzer(mock_llm).analyze("Ship release", NOW)

        assert result.status == AnalysisStatus.OK
        assert result.task.estimated_duration == 120
        assert result.task.mental_load is None
        assert result.task.priority == 0.9
        slot = SlotSuggester().suggest(result.task, NOW)
        assert slot.start_time == time(10, 0)
        assert slot.end_time == time(12, 0)

    def test_free_text_deadline_is_dropped(self, mock_llm):
        mock_llm.chat.return_value = (
            '{"taskType": "social", "estimatedDuration": 120, "mentalLoad": "low", '
            '"deadline": "Friday evening", "priority": 0.3, "reasoning": "Dinner"}'
        )
        result = TaskAnalyzer(mock_llm).analyze("Dinner with friends", NOW)

        assert result.status == AnalysisStatus.OK
        assert result.task.deadline is None
        assert result.task.estimated_duration == 120
        assert result.task.task_type == TaskType.SOCIAL
        assert result.task.reasoning == "Dinner"

    def test_off_list_task_type_is_personal(self, mock_llm):
        mock_llm.chat.return_value = (
            '{"taskType": "napping", "estimatedDuration": 20, "mentalLoad": "low", '
            '"priority": 0.1, "deadline": "2024-01-02T18:00:00"}'
        )
        task = TaskAnalyzer(mock_llm).analyze("Power nap").task
        assert task.task_type == TaskType.PERSONAL
        assert task.estimated_duration == 20
        assert task.deadline == datetime(2024, 1, 2, 18, 0)
        assert task.reasoning == ""

    @pytest.mark.parametrize(
        "reply",
        [
            "no json here",
            '{"taskType": "work"}',
            '{"taskType": "work", "estimatedDuration": 0, "mentalLoad": "low", "priority": 0.4}',
            '{"taskType": "work", "estimatedDuration": "a while", "mentalLoad": "low", "priority": 0.4}',
            '{"taskType": "work", "estimatedDuration": 30, "mentalLoad": "low", "priority": 4}',
        ],
    )
    def test_unusable_reply_falls_back(self, mock_llm, reply):
        mock_llm.chat.return_value = reply
        analyzer = TaskAnalyzer(mock_llm)
        result = analyzer.analyze("Tidy desk", default_duration=45)

        assert result.status == AnalysisStatus.FALLBACK
        assert result.reason
        task = result.task
        assert task.description == "Tidy desk"
        assert task.task_type == TaskType.PERSONAL
        assert task.estimated_duration == 45
        assert task.mental_load == MentalLoad.MEDIUM
        assert task.priority == 0.5
        assert task.deadline is None
        assert task.reasoning.startswith("Failed to parse API response:")
        assert analyzer.metrics["fallbacks"] == 1

    def test_fallback_uses_config_duration(self, mock_llm):
        mock_llm.chat.return_value = "nope"
        analyzer = TaskAnalyzer(mock_llm, AnalyzerConfig(default_duration=25))
        assert analyzer.analyze("Tidy desk").task.estimated_duration == 25

    def test_llm_failure_is_error(self, mock_llm):
        mock_llm.chat.side_effect = RuntimeError("connection refused")
        analyzer = TaskAnalyzer(mock_llm)
        result = analyzer.analyze("Tidy desk")

        assert result.status == AnalysisStatus.ERROR
        assert result.task is None
        assert "connection refused" in result.reason
        assert analyzer.metrics["errors"] == 1

    def test_analyze_or_raise(self, mock_llm):
        analyzer = TaskAnalyzer(mock_llm)
        assert analyzer.analyze_or_raise("Write report").estimated_duration == 60

        mock_llm.chat.side_effect = RuntimeError("timeout")
        with pytest.raises(AnalysisError) as exc_info:
            analyzer.analyze_or_raise("Write report")
        assert "timeout" in exc_info.value.reason

    @pytest.mark.parametrize("description", ["", "   ", None])
    def test_empty_description(self, mock_llm, description):
        with pytest.raises(ValueError):
            TaskAnalyzer(mock_llm).analyze(description)
        mock_llm.chat.assert_not_called()


@pytest.mark.unit
class TestFormatting:
    def test_format_duration(self):
        assert format_duration(45) == "45m"
        assert format_duration(60) == "1h 0m"
        assert format_duration(135) == "2h 15m"

    def test_task_summary(self):
        task = TaskData(
            description="Prepare slides",
            task_type=TaskType.WORK,
            estimated_duration=90,
            mental_load=MentalLoad.HIGH,
            deadline="2024-01-05 09:00",
            priority=0.85,
            reasoning="Presentation on Friday",
        )
        assert format_task_summary(task) == (
            "Task Analysis:\n"
            "- Type: work\n"
            "- Duration: 1h 30m\n"
            "- Mental Load: high\n"
            "- Priority: 85%\n"
            "- Deadline: 2024-01-05 09:00\n"
            "\n"
            "Presentation on Friday"
        )

    def test_summary_without_deadline(self):
        summary = format_task_summary(TaskData(description="Walk", reasoning="Fresh air"))
        assert "Deadline" not in summary
        assert summary.endswith("\n\nFresh air")


@pytest.mark.unit
class TestPromptBuilder:
    def test_prompt_lists_fields_and_types(self):
        prompt = PromptBuilder().get_analysis_prompt("Bake bread")
        for name in ("taskType", "estimatedDuration", "mentalLoad", "deadline", "priority", "reasoning"):
            assert name in prompt
        assert "household" in prompt and "exercise" in prompt


@pytest.mark.unit
class TestLlmClients:
    """Test the Ollama and Anthropic chat clients with mocked transports"""

    @patch("TaskPilot.agents.base.ollama.Client")
    def test_ollama_chat(self, mock_client_cls):
        response = Mock()
        response.message.content = VALID_REPLY
        mock_client_cls.return_value.chat.return_value = response

        llm = LlmWrapper(model="test-model", host="http://ollama:11434")
        assert llm.chat([{"role": "user", "content": "hi"}], json_mode=True) == VALID_REPLY

        mock_client_cls.assert_called_once_with(host="http://ollama:11434", timeout=30.0)
        kwargs = mock_client_cls.return_value.chat.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["format"] == "json"
        assert kwargs["options"] == {"temperature": 0.2}

    @patch("TaskPilot.agents.base.ollama.Client")
    def test_ollama_dict_response(self, mock_client_cls):
        mock_client_cls.return_value.chat.return_value = {"message": {"content": "ok"}}
        assert LlmWrapper().chat([]) == "ok"

    @patch("TaskPilot.agents.base.ollama.Client")
    def test_ollama_failure_is_wrapped(self, mock_client_cls):
        mock_client_cls.return_value.chat.side_effect = ConnectionError("refused")
        with pytest.raises(RuntimeError, match="LLM chat failed"):
            LlmWrapper(model="m").chat([])

    def _anthropic(self, status_code, body):
        session = MagicMock()
        session.post.return_value.status_code = status_code
        session.post.return_value.json.return_value = body
        return AnthropicWrapper(model="claude-test", api_key="sk-test", session=session), session

    def test_anthropic_chat(self):
        llm, session = self._anthropic(
            200, {"content": [{"type": "text", "text": VALID_REPLY}]}
        )
        messages = PromptBuilder().build_messages("Read a book", NOW)
        assert llm.chat(messages, json_mode=True) == VALID_REPLY

        kwargs = session.post.call_args.kwargs
        assert kwargs["headers"]["x-api-key"] == "sk-test"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        body = kwargs["json"]
        assert body["model"] == "claude-test"
        assert body["system"] == messages[0]["content"]
        assert body["messages"] == [messages[1]]

    def test_anthropic_error_message(self):
        llm, _ = self._anthropic(401, {"error": {"message": "invalid x-api-key"}})
        with pytest.raises(RuntimeError, match="invalid x-api-key"):
            llm.chat([{"role": "user", "content": "hi"}])

    def test_anthropic_error_without_body(self):
        llm, session = self._anthropic(500, None)
        session.post.return_value.json.side_effect = ValueError("not json")
        with pytest.raises(RuntimeError, match="API Error: 500"):
            llm.chat([{"role": "user", "content": "hi"}])

    def test_anthropic_empty_content(self):
        llm, _ = self._anthropic(200, {"content": []})
        with pytest.raises(RuntimeError, match="Empty response from API"):
            llm.chat([{"role": "user", "content": "hi"}])

    @patch("TaskPilot.agents.base.ollama.Client")
    def test_get_llm_selects_provider(self, mock_client_cls):
        system = SystemConfig(ollama_host="http://ollama:11434", anthropic_api_key="sk")
        assert isinstance(get_llm(AnalyzerConfig(), system), LlmWrapper)
        llm = get_llm(AnalyzerConfig(llm_provider="anthropic", model="claude-x"), system)
        assert isinstance(llm, AnthropicWrapper)
        assert llm.api_key == "sk" and llm.model == "claude-x"

    def test_analyzer_config_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKPILOT_LLM_PROVIDER", "Anthropic")
        monkeypatch.delenv("TASKPILOT_MODEL", raising=False)
        config = get_analyzer_config()
        assert config.llm_provider == "anthropic"
        assert config.model == "claude-sonnet-4-5"

        monkeypatch.setenv("TASKPILOT_LLM_PROVIDER", "mystery")
        assert get_analyzer_config().llm_provider == "ollama"
