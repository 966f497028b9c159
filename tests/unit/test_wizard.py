"""Tests for interactive rule authoring."""

import json
from io import StringIO

from rich.console import Console

from nugetsync.models import Action, TargetPolicy
from nugetsync.rules import load_rules
from nugetsync.wizard import add_rule_interactive, load_or_create, prompt_rule


class ScriptedPrompts:
    """Answers prompts from a fixed script and records the questions."""

    def __init__(self, answers, confirmations=()):
        self.answers = list(answers)
        self.confirmations = list(confirmations)
        self.questions = []

    def ask(self, label, **kwargs):
        self.questions.append((label, kwargs))
        return self.answers.pop(0)

    def confirm(self, label, **kwargs):
        return self.confirmations.pop(0) if self.confirmations else False


def quiet_console():
    return Console(file=StringIO())


class TestPromptRule:
    def test_upgrade_rule_with_notes(self):
        prompts = ScriptedPrompts(
            ["Newtonsoft.Json", "upgrade", "exact", "13.0.3", "[12.0,13.0)", "Review serializer settings", "*", "Patch"],
            confirmations=[True, True, False],
        )

        rule = prompt_rule(prompts.ask, prompts.confirm)

        assert rule.id == "Newtonsoft.Json"
        assert rule.action is Action.UPGRADE
        assert rule.target_policy is TargetPolicy.EXACT
        assert rule.target_version == "13.0.3"
        assert [(u.from_selector, u.notes, u.to) for u in rule.upgrades] == [
            ("[12.0,13.0)", "Review serializer settings", "13.0.3"),
            ("*", "Patch", "13.0.3"),
        ]

    def test_remove_rule_skips_target_questions(self):
        prompts = ScriptedPrompts(["Serilog", "remove"])

        rule = prompt_rule(prompts.ask, prompts.confirm)

        assert rule.action is Action.REMOVE
        assert rule.target_policy is TargetPolicy.NONE
        assert rule.target_version is None
        assert rule.upgrades == ()
        assert [label for label, _ in prompts.questions] == ["Package id", "Action"]

    def test_blank_answers_are_asked_again(self):
        prompts = ScriptedPrompts(["", "  ", "Foo", "upgrade", "higher", "", "2.0.0"])

        rule = prompt_rule(prompts.ask, prompts.confirm)

        assert rule.id == "Foo"
        assert rule.target_policy is TargetPolicy.HIGHER
        assert rule.target_version == "2.0.0"

    def test_action_prompt_offers_choices(self):
        prompts = ScriptedPrompts(["Foo", "remove"])
        prompt_rule(prompts.ask, prompts.confirm)

        _, kwargs = prompts.questions[1]
        assert kwargs["choices"] == ["upgrade", "remove"]
        assert kwargs["default"] == "upgrade"


class TestAddRuleInteractive:
    def test_creates_rules_file(self, tmp_path):
        rules_path = tmp_path / "data" / "nugetsyncrules.json"
        prompts = ScriptedPrompts(["Foo", "upgrade", "exact_or_higher", "2.0.0"])

        add_rule_interactive(rules_path, prompts.ask, prompts.confirm, console=quiet_console())

        document = json.loads(rules_path.read_text())
        assert document["packages"] == [
            {
                "id": "Foo",
                "action": "upgrade",
                "targetVersion": "2.0.0",
                "targetPolicy": "exact_or_higher",
                "includeTransitive": None,
                "upgrades": [],
            }
        ]

    def test_replaces_existing_rule_and_keeps_include_transitive(self, rules_file):
        document = json.loads(rules_file.read_text())
        document["packages"][0]["includeTransitive"] = True
        rules_file.write_text(json.dumps(document))
        prompts = ScriptedPrompts(["Newtonsoft.Json", "upgrade", "exact", "13.0.3"])

        add_rule_interactive(rules_file, prompts.ask, prompts.confirm, console=quiet_console())

        rule_set = load_rules(rules_file)
        assert len(rule_set) == 2
        rule = rule_set.get("NEWTONSOFT.JSON")
        assert rule.id == "Newtonsoft.Json"
        assert rule.target_policy is TargetPolicy.EXACT
        assert rule.include_transitive is True
        assert rule.upgrades == ()
        assert rule_set.get("serilog").action is Action.REMOVE

    def test_reports_saved_path(self, tmp_path):
        output = StringIO()
        rules_path = tmp_path / "rules.json"
        prompts = ScriptedPrompts(["Foo", "remove"])

        add_rule_interactive(rules_path, prompts.ask, prompts.confirm, console=Console(file=output, width=200))

        assert "Rules saved to" in output.getvalue()


class TestLoadOrCreate:
    def test_missing_file_is_empty(self, tmp_path):
        assert len(load_or_create(tmp_path / "missing.json")) == 0

    def test_existing_file(self, rules_file):
        assert len(load_or_create(rules_file)) == 2
