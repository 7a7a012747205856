"""Tests for active content assembly and tool restrictions."""

from skill_engine.conf import EngineConfig
from skill_engine.skills.engine import SkillEngine
from skill_engine.skills.registry import SkillRegistry

SESSION = "session-1"


class TestActiveContent:
    """Tests for budget-capped content assembly."""

    def test_empty_when_nothing_active(self, engine: SkillEngine) -> None:
        assert engine.active_content(SESSION) == ""
        engine.tick(SESSION, "x")
        assert engine.active_content(SESSION) == ""

    def test_includes_display_name_and_body(
        self, engine: SkillEngine, skill_factory
    ) -> None:
        engine.register(skill_factory("meeting-prep", body="Gather the agenda."))
        engine.load(SESSION, "meeting-prep")

        content = engine.active_content(SESSION)

        assert content.startswith("## Active Skills")
        assert "## Skill: Meeting Prep\n\nGather the agenda." in content

    def test_most_recent_first(self, engine: SkillEngine, skill_factory) -> None:
        engine.register(skill_factory("older", body="OLDER BODY"))
        engine.register(skill_factory("newer", body="NEWER BODY"))
        engine.load(SESSION, "older")
        engine.tick(SESSION, "x")
        engine.load(SESSION, "newer")

        content = engine.active_content(SESSION)

        assert content.index("NEWER BODY") < content.index("OLDER BODY")

    def test_ties_ordered_by_slug(self, engine: SkillEngine, skill_factory) -> None:
        engine.register(skill_factory("zulu", body="ZULU"))
        engine.register(skill_factory("alpha", body="ALPHA"))
        engine.load(SESSION, "zulu")
        engine.load(SESSION, "alpha")

        content = engine.active_content(SESSION)

        assert content.index("ALPHA") < content.index("ZULU")

    def test_oversized_skill_skipped_whole(
        self, engine: SkillEngine, skill_factory
    ) -> None:
        engine.register(skill_factory("small", body="s" * 9000))
        engine.register(skill_factory("big", body="b" * 10001))
        engine.load(SESSION, "small")
        engine.tick(SESSION, "x")
        engine.load(SESSION, "big")

        content = engine.active_content(SESSION)

        assert "b" * 10001 in content
        assert "s" * 50 not in content
        assert "## Skill: Small" not in content
        assert len(content) < 10001 + 500

    def test_smaller_skill_fills_remaining_budget(
        self, engine: SkillEngine, skill_factory
    ) -> None:
        engine.register(skill_factory("big", body="b" * 10001))
        engine.register(skill_factory("medium", body="m" * 9000))
        engine.register(skill_factory("tiny", body="t" * 100))
        engine.load(SESSION, "tiny")
        engine.tick(SESSION, "x")
        engine.load(SESSION, "medium")
        engine.tick(SESSION, "x")
        engine.load(SESSION, "big")

        content = engine.active_content(SESSION)

        assert "b" * 10001 in content
        assert "m" * 9000 not in content
        assert "t" * 100 in content

    def test_single_skill_over_budget_yields_empty(self, skill_factory) -> None:
        engine = SkillEngine(
            SkillRegistry(), EngineConfig(skill_dir=None, content_budget=10)
        )
        engine.register(skill_factory("wordy", body="x" * 11))
        engine.load(SESSION, "wordy")

        assert engine.active_content(SESSION) == ""

    def test_exact_budget_fits(self, skill_factory) -> None:
        engine = SkillEngine(
            SkillRegistry(), EngineConfig(skill_dir=None, content_budget=10)
        )
        engine.register(skill_factory("exact", body="x" * 10))
        engine.load(SESSION, "exact")

        assert "x" * 10 in engine.active_content(SESSION)

    def test_empty_body_falls_back_to_description(
        self, engine: SkillEngine, skill_factory
    ) -> None:
        engine.register(skill_factory("bare", body="", description="Bare skill"))
        engine.load(SESSION, "bare")

        assert "Bare skill" in engine.active_content(SESSION)


class TestToolRestrictions:
    """Tests for the union of tool allow-lists."""

    def test_unrestricted_without_active_skills(self, engine: SkillEngine) -> None:
        assert engine.active_tool_restrictions(SESSION) is None

    def test_unrestricted_when_no_skill_declares_tools(
        self, engine: SkillEngine, skill_factory
    ) -> None:
        engine.register(skill_factory("open"))
        engine.load(SESSION, "open")
        assert engine.active_tool_restrictions(SESSION) is None

    def test_unrestricted_skill_does_not_widen(
        self, engine: SkillEngine, skill_factory
    ) -> None:
        engine.register(skill_factory("files", tools=("file",)))
        engine.register(skill_factory("open"))
        engine.load(SESSION, "files")
        engine.load(SESSION, "open")

        assert engine.active_tool_restrictions(SESSION) == ["file"]

    def test_union_across_skills(self, engine: SkillEngine, skill_factory) -> None:
        engine.register(skill_factory("files", tools=("file", "shell")))
        engine.register(skill_factory("web", tools=("web", "file")))
        engine.load(SESSION, "files")
        engine.load(SESSION, "web")

        assert engine.active_tool_restrictions(SESSION) == ["file", "shell", "web"]

    def test_restrictions_drop_after_unload(
        self, engine: SkillEngine, skill_factory
    ) -> None:
        engine.register(skill_factory("files", tools=("file",)))
        engine.load(SESSION, "files")
        engine.unload(SESSION, "files")

        assert engine.active_tool_restrictions(SESSION) is None
