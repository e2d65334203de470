"""
EPK Renderer — visibility rules, escaping, section content, one-sheet.
"""

import re

from engine.kernel.gate import GateState
from engine.kernel.profile import default_profile
from engine.kernel.renderer import (
    qr_code_url,
    render_error_page,
    render_not_found,
    render_one_sheet,
    render_page,
    safe_url,
    visible_sections,
    youtube_id,
)
from engine.kernel.sections import (
    add_custom,
    default_sections,
    sections_to_document,
    toggle_visibility,
    update_field,
)
from engine.kernel.types import RenderOptions


def extract_main(html):
    match = re.search(r"<main[^>]*>(.*?)</main>", html, re.DOTALL)
    return match.group(1) if match else ""


def profile(**overrides):
    doc = default_profile("Neon Echo", "mgr@example.com")
    doc.update(overrides)
    return doc


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


class TestVisibleSections:
    def test_vault_hidden_while_locked(self):
        types = [s.type for s in visible_sections(profile(), GateState.LOCKED)]
        assert "vault" not in types
        assert types == ["contact", "songs", "videos", "tour", "press"]

    def test_vault_hidden_while_unlocking(self):
        assert "vault" not in [s.type for s in visible_sections(profile(), GateState.UNLOCKING)]

    def test_vault_shown_when_unlocked(self):
        types = [s.type for s in visible_sections(profile(), GateState.UNLOCKED)]
        assert types[1] == "vault"

    def test_hidden_sections_never_render(self):
        sections = toggle_visibility(default_sections(), 2)  # songs
        sections = toggle_visibility(sections, 1)  # vault
        doc = profile(sections=sections_to_document(sections))
        for gate in GateState:
            types = [s.type for s in visible_sections(doc, gate)]
            assert "songs" not in types
            assert "vault" not in types

    def test_missing_sections_use_fallback(self):
        doc = profile()
        del doc["sections"]
        types = [s.type for s in visible_sections(doc, GateState.UNLOCKED)]
        assert types == ["songs", "videos", "tour", "press", "vault", "contact"]

    def test_empty_sections_render_nothing(self):
        assert visible_sections(profile(sections=[]), GateState.UNLOCKED) == []


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------


class TestRenderPage:
    def test_header_and_theme(self):
        html = render_page(profile(colors={"background": "#111111", "accent": "#222222", "font": "#333333"}), "neon-echo")
        assert "<h1>Neon Echo</h1>" in html
        assert "--bg: #111111" in html
        assert "--accent: #222222" in html
        assert "--fg: #333333" in html

    def test_locked_page_has_unlock_form_and_no_vault(self):
        html = render_page(profile(vault={"press_photos": "https://cdn.example.com/p.zip", "tech_rider": ""}), "neon-echo")
        assert 'action="/neon-echo/unlock"' in html
        assert "section-vault" not in html
        assert "cdn.example.com" not in html

    def test_unlocked_page_has_vault_forms(self):
        doc = profile(vault={"press_photos": "https://cdn.example.com/p.zip", "tech_rider": ""})
        html = render_page(doc, "neon-echo", GateState.UNLOCKED, RenderOptions(pin="1234"))
        assert "section-vault" in html
        assert 'action="/neon-echo/vault/press_photos"' in html
        assert 'action="/neon-echo/vault/tech_rider"' not in html
        assert 'name="pin" value="1234"' in html
        assert "/neon-echo/one-sheet" in html

    def test_section_order_follows_document(self):
        sections = [s for s in default_sections() if s.type in ("press", "contact")]
        sections.reverse()
        doc = profile(
            sections=sections_to_document(sections),
            press=[{"id": "p1", "publication": "Wire", "quote": "Loud.", "link": ""}],
        )
        main = extract_main(render_page(doc, "x"))
        assert main.index("section-press") < main.index("section-contact")

    def test_empty_songs_section_is_omitted(self):
        assert "section-songs" not in render_page(profile(), "x")

    def test_songs_render(self):
        doc = profile(songs=[{"id": "s1", "title": "Static", "duration": "3:12", "audio_url": ""}])
        html = render_page(doc, "x")
        assert "Static" in html
        assert "3:12" in html

    def test_values_are_escaped(self):
        doc = profile(display_name='<script>alert("x")</script>', bio="a & b")
        html = render_page(doc, "x")
        assert "<script>alert" not in html
        assert "&lt;script&gt;" in html
        assert "a &amp; b" in html

    def test_javascript_urls_dropped(self):
        doc = profile(tour=[{"id": "t", "date": "2030-01-02", "venue": "V", "city": "C", "ticket_url": "javascript:alert(1)"}])
        html = render_page(doc, "x")
        assert "javascript:" not in html
        assert "02 JAN" in html

    def test_social_links_go_through_click_counter(self):
        doc = profile(socials=[{"id": "abc", "platform": "spotify", "url": "https://open.spotify.com/a"}])
        html = render_page(doc, "neon-echo")
        assert 'href="/neon-echo/links/abc"' in html
        assert ">Spotify<" in html

    def test_custom_text_section(self):
        sections = add_custom(default_sections())
        sections = update_field(sections, sections[-1].id, "content", "Hello world")
        html = render_page(profile(sections=sections_to_document(sections)), "x")
        assert "section-custom" in html
        assert "Hello world" in html

    def test_custom_video_embeds_youtube(self):
        sections = add_custom(default_sections())
        cid = sections[-1].id
        sections = update_field(sections, cid, "content_kind", "video")
        sections = update_field(sections, cid, "url", "https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        html = render_page(profile(sections=sections_to_document(sections)), "x")
        assert "https://www.youtube.com/embed/dQw4w9WgXcQ" in html

    def test_notice_rendered(self):
        html = render_page(profile(), "x", options=RenderOptions(notice="Incorrect PIN."))
        assert "Incorrect PIN." in html

    def test_deterministic(self):
        doc = profile()
        assert render_page(doc, "x") == render_page(doc, "x")


class TestMessagePages:
    def test_not_found(self):
        html = render_not_found("ghost")
        assert "Band Not Found" in html
        assert "/ghost" in html

    def test_error_page_has_reload(self):
        html = render_error_page("The profile database is unavailable.")
        assert "System Error" in html
        assert "Reload Application" in html


# ---------------------------------------------------------------------------
# One-sheet
# ---------------------------------------------------------------------------


class TestOneSheet:
    def test_upcoming_tour_and_top_songs(self):
        doc = profile(
            songs=[{"id": str(i), "title": f"Song {i}", "duration": "1:00"} for i in range(1, 8)],
            tour=[
                {"id": "a", "date": "2024-04-30", "venue": "Past Hall", "city": "Old"},
                {"id": "b", "date": "2024-05-01", "venue": "Today Club", "city": "Now"},
                {"id": "c", "date": "2024-06-01", "venue": "Future Arena", "city": "Next"},
            ],
        )
        html = render_one_sheet(doc, "neon-echo", "https://playback.fm/neon-echo", today="2024-05-01")
        assert "Song 5" in html
        assert "Song 6" not in html
        assert "Past Hall" not in html
        assert "Today Club" in html
        assert "Future Arena" in html
        assert "window.print()" in html
        assert "api.qrserver.com" in html

    def test_contact_block(self):
        html = render_one_sheet(profile(), "x", "https://playback.fm/x", today="2024-05-01")
        assert 'href="mailto:mgr@example.com"' in html


class TestHelpers:
    def test_qr_url_uses_theme_colors(self):
        url = qr_code_url("https://playback.fm/x", {"background": "#000000", "font": "#ffffff"}, size=300)
        assert url.startswith("https://api.qrserver.com/v1/create-qr-code/?")
        assert "size=300x300" in url
        assert "color=ffffff" in url
        assert "bgcolor=000000" in url
        assert "data=https%3A%2F%2Fplayback.fm%2Fx" in url

    def test_youtube_id(self):
        assert youtube_id("https://youtu.be/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
        assert youtube_id("https://vimeo.com/1") is None
        assert youtube_id("") is None

    def test_safe_url(self):
        assert safe_url("https://a.example") == "https://a.example"
        assert safe_url("/local") == "/local"
        assert safe_url("javascript:alert(1)") == ""
        assert safe_url(None) == ""
