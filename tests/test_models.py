"""Tests for entity helpers."""

from seogen.models import Article, Keyword, VoiceProfile


def test_export_html_renders_markdown():
    article = Article(content="# Title\n\n| a | b |\n|---|---|\n| 1 | 2 |")
    html = article.export_html()
    assert "<h1>Title</h1>" in html
    assert "<table>" in html
    assert article.export_markdown().startswith("# Title")


def test_keyword_difficulty_levels_and_easy_wins():
    assert Keyword(keyword="a b c", difficulty=10, opportunity=70).easy_win
    assert not Keyword(keyword="a b c", opportunity=69).easy_win
    assert [Keyword(keyword="k", difficulty=d).difficulty_level for d in (0, 33, 66)] == ["Low", "Medium", "High"]


def test_voice_profile_instruction_includes_sample():
    voice = VoiceProfile(name="Coach", description="Upbeat.", sample_text="Let's go!")
    assert voice.to_prompt_instruction() == "Upbeat.\n\nExample writing style:\nLet's go!"
    assert VoiceProfile(name="Plain", description="Calm.").to_prompt_instruction() == "Calm."


def test_terminal_statuses():
    assert Article(status="completed").is_terminal
    assert Article(status="failed").is_terminal
    assert not Article(status="generating").is_terminal
