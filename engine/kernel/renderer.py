"""
EPK Kernel — Renderer

Pure functions: (profile document, gate state, options) → HTML string.
No IO. Deterministic: same input → same output.

Sections are rendered in stored order. Hidden sections are skipped, and the
vault is skipped unless the gate is unlocked. Each section type has its own
mustache template; values are HTML-escaped by chevron, URLs are further
restricted to http(s), mailto and same-site paths.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date
from typing import Any
from urllib.parse import quote, urlencode

import chevron

from engine.kernel import profile as profile_doc
from engine.kernel.gate import GateState
from engine.kernel.sections import fallback_sections, sections_from_document
from engine.kernel.types import (
    PLATFORM_OPTIONS,
    VAULT_ASSETS,
    CustomSection,
    RenderOptions,
    Section,
    today_iso,
)

DEFAULT_QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/"

_YOUTUBE_ID = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")
_SAFE_URL = re.compile(r"^(https?://|mailto:|/)", re.IGNORECASE)

# Font selector → (CSS family, Google Fonts import or "")
_FONTS: dict[str, tuple[str, str]] = {
    "font-sans": ("'Inter', sans-serif", "https://fonts.googleapis.com/css2?family=Inter:wght@400;700;900&display=swap"),
    "font-serif": (
        "'Playfair Display', serif",
        "https://fonts.googleapis.com/css2?family=Playfair+Display:wght@400;700;900&display=swap",
    ),
    "font-mono": ("'Space Mono', monospace", "https://fonts.googleapis.com/css2?family=Space+Mono:wght@400;700&display=swap"),
    "font-['Georgia']": ("Georgia, serif", ""),
    "font-['Verdana']": ("Verdana, sans-serif", ""),
    "font-['Courier_New']": ("'Courier New', monospace", ""),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def visible_sections(doc: dict[str, Any], gate: GateState = GateState.LOCKED) -> list[Section]:
    """
    The sections a viewer sees, in display order.

    Documents without a `sections` key get fallback_sections(). A section
    with visible=False never appears; the vault appears only when unlocked.
    """
    sections = sections_from_document(doc)
    if sections is None:
        sections = fallback_sections()

    shown: list[Section] = []
    for section in sections:
        if not section.visible:
            continue
        if section.type == "vault" and gate is not GateState.UNLOCKED:
            continue
        shown.append(section)
    return shown


def render_page(
    doc: dict[str, Any],
    public_id: str,
    gate: GateState = GateState.LOCKED,
    options: RenderOptions | None = None,
) -> str:
    """Render the complete public EPK page."""
    opts = options or RenderOptions()
    ctx = _base_context(doc, public_id, opts)

    fragments = []
    for section in visible_sections(doc, gate):
        renderer = _SECTION_RENDERERS.get(section.type)
        if renderer is None:
            continue
        html = renderer(section, doc, ctx)
        if html:
            fragments.append(html)

    ctx.update(
        {
            "unlocked": gate is GateState.UNLOCKED,
            "notice": opts.notice,
            "sections_html": "\n".join(fragments),
            "bio": doc.get("bio") or "",
        }
    )
    return chevron.render(_PAGE_TEMPLATE, ctx, partials_dict={"head": _HEAD_PARTIAL})


def render_not_found(public_id: str) -> str:
    return chevron.render(_MESSAGE_TEMPLATE, {"title": "Band Not Found", "message": f"No EPK lives at /{public_id}."})


def render_error_page(message: str) -> str:
    """Full-screen terminal error with a manual reload."""
    return chevron.render(_MESSAGE_TEMPLATE, {"title": "System Error", "message": message, "reload": True})


def render_one_sheet(
    doc: dict[str, Any],
    public_id: str,
    public_url: str,
    qr_service_url: str = DEFAULT_QR_SERVICE_URL,
    today: str | None = None,
) -> str:
    """
    Print-formatted standalone one-sheet. Opens the print dialog on load.

    Includes the top five songs, press quotes, and tour dates from `today`
    onwards (UTC date by default).
    """
    opts = RenderOptions(public_url=public_url)
    ctx = _base_context(doc, public_id, opts)
    cutoff = today or today_iso()

    upcoming = [t for t in profile_doc.items(doc, "tour") if (t.get("date") or "") >= cutoff]
    songs = profile_doc.items(doc, "songs")[:5]
    manager = doc.get("manager") or {}

    ctx.update(
        {
            "bio": doc.get("bio") or "",
            "songs": [{"n": i + 1, "title": s.get("title", ""), "duration": s.get("duration", "")} for i, s in enumerate(songs)],
            "has_songs": bool(songs),
            "press": [{"quote": p.get("quote", ""), "publication": p.get("publication", "")} for p in profile_doc.items(doc, "press")],
            "has_press": bool(profile_doc.items(doc, "press")),
            "tour": [_tour_row(t) for t in upcoming],
            "has_tour": bool(upcoming),
            "manager_name": manager.get("name", ""),
            "manager_email": manager.get("email", ""),
            "mailto": safe_url(f"mailto:{manager.get('email', '')}") if manager.get("email") else "",
            "live_url": safe_url(public_url),
            "qr_url": qr_code_url(public_url, profile_doc.colors(doc), size=100, service_url=qr_service_url),
        }
    )
    return chevron.render(_ONE_SHEET_TEMPLATE, ctx, partials_dict={"head": _HEAD_PARTIAL})


def qr_code_url(
    data: str,
    colors: dict[str, str],
    size: int = 300,
    service_url: str = DEFAULT_QR_SERVICE_URL,
) -> str:
    """URL of a QR code image for `data`, drawn in the profile's colors."""
    params = {
        "size": f"{size}x{size}",
        "data": data,
        "color": colors.get("font", "#ffffff").lstrip("#"),
        "bgcolor": colors.get("background", "#050505").lstrip("#"),
    }
    return f"{service_url}?{urlencode(params)}"


def youtube_id(url: str | None) -> str | None:
    if not url:
        return None
    match = _YOUTUBE_ID.match(url)
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


def _base_context(doc: dict[str, Any], public_id: str, opts: RenderOptions) -> dict[str, Any]:
    palette = profile_doc.colors(doc)
    family, font_import = _FONTS.get(profile_doc.font(doc), _FONTS["font-sans"])
    base = f"/{quote(public_id, safe='')}"
    return {
        "public_id": public_id,
        "base": base,
        "display_name": doc.get("display_name") or profile_doc.DEFAULT_DISPLAY_NAME,
        "tagline": doc.get("tagline") or "",
        "hero_image": safe_url(doc.get("hero_image")),
        "bg": palette["background"],
        "accent": palette["accent"],
        "fg": palette["font"],
        "font_family": family,
        "font_import": font_import,
        "pin": opts.pin or "",
        "public_url": opts.public_url,
        "socials": [
            {
                "platform": s.get("platform", ""),
                "label": PLATFORM_OPTIONS.get(s.get("platform", ""), s.get("platform", "")),
                "href": f"{base}/links/{quote(str(s.get('id', '')), safe='')}",
                "url": safe_url(s.get("url")),
            }
            for s in profile_doc.items(doc, "socials")
            if s.get("url")
        ],
    }


def safe_url(url: str | None) -> str:
    """`url` if it is http(s), mailto or a same-site path; otherwise ""."""
    if url and _SAFE_URL.match(url.strip()):
        return url.strip()
    return ""


def _tour_row(t: dict[str, Any]) -> dict[str, Any]:
    day, month = "??", "???"
    try:
        d = date.fromisoformat(t.get("date") or "")
        day, month = f"{d.day:02d}", d.strftime("%b").upper()
    except ValueError:
        pass
    return {
        "day": day,
        "month": month,
        "venue": t.get("venue", ""),
        "city": t.get("city", ""),
        "ticket_url": safe_url(t.get("ticket_url")),
    }


# ---------------------------------------------------------------------------
# Section rendering
# ---------------------------------------------------------------------------


def _render_contact(section: Section, doc: dict[str, Any], ctx: dict[str, Any]) -> str:
    manager = doc.get("manager") or {}
    email = manager.get("email") or ""
    return chevron.render(
        _CONTACT_TEMPLATE,
        {
            "id": section.id,
            "title": section.title,
            "name": manager.get("name") or "",
            "email": email,
            "mailto": safe_url(f"mailto:{email}") if email else "",
        },
    )


def _render_vault(section: Section, doc: dict[str, Any], ctx: dict[str, Any]) -> str:
    vault = doc.get("vault") or {}
    assets = [
        {"asset": key, "label": label, "action": f"{ctx['base']}/vault/{key}"}
        for key, label in VAULT_ASSETS.items()
        if safe_url(vault.get(key))
    ]
    return chevron.render(
        _VAULT_TEMPLATE,
        {
            "id": section.id,
            "title": section.title,
            "assets": assets,
            "pin": ctx["pin"],
            "one_sheet": f"{ctx['base']}/one-sheet",
            "qr_url": qr_code_url(ctx["public_url"], profile_doc.colors(doc)) if ctx["public_url"] else "",
        },
    )


def _render_songs(section: Section, doc: dict[str, Any], ctx: dict[str, Any]) -> str:
    songs = profile_doc.items(doc, "songs")
    if not songs:
        return ""
    rows = [
        {
            "n": i + 1,
            "title": s.get("title", ""),
            "duration": s.get("duration", ""),
            "audio_url": safe_url(s.get("audio_url")),
        }
        for i, s in enumerate(songs)
    ]
    return chevron.render(_SONGS_TEMPLATE, {"id": section.id, "title": section.title, "songs": rows})


def _render_videos(section: Section, doc: dict[str, Any], ctx: dict[str, Any]) -> str:
    videos = profile_doc.items(doc, "videos")
    if not videos:
        return ""
    rows = [
        {"title": v.get("title", ""), "youtube_id": youtube_id(v.get("url")), "url": safe_url(v.get("url"))}
        for v in videos
    ]
    return chevron.render(_VIDEOS_TEMPLATE, {"id": section.id, "title": section.title, "videos": rows})


def _render_tour(section: Section, doc: dict[str, Any], ctx: dict[str, Any]) -> str:
    dates = profile_doc.items(doc, "tour")
    if not dates:
        return ""
    return chevron.render(
        _TOUR_TEMPLATE,
        {"id": section.id, "title": section.title, "dates": [_tour_row(t) for t in dates]},
    )


def _render_press(section: Section, doc: dict[str, Any], ctx: dict[str, Any]) -> str:
    press = profile_doc.items(doc, "press")
    if not press:
        return ""
    rows = [
        {"quote": p.get("quote", ""), "publication": p.get("publication", ""), "link": safe_url(p.get("link"))}
        for p in press
    ]
    return chevron.render(_PRESS_TEMPLATE, {"id": section.id, "title": section.title, "press": rows})


def _render_custom(section: Section, doc: dict[str, Any], ctx: dict[str, Any]) -> str:
    assert isinstance(section, CustomSection)
    kind = section.content_kind
    media = safe_url(section.file_url) or safe_url(section.url)
    return chevron.render(
        _CUSTOM_TEMPLATE,
        {
            "id": section.id,
            "title": section.title,
            "content": section.content,
            "is_text": kind == "text",
            "is_image": kind == "image" and bool(media),
            "is_audio": kind == "audio" and bool(media),
            "is_link": kind == "link" and bool(safe_url(section.url)),
            "is_video": kind == "video",
            "youtube_id": youtube_id(section.url) if kind == "video" else None,
            "media": media,
            "url": safe_url(section.url),
        },
    )


_SECTION_RENDERERS: dict[str, Callable[[Section, dict[str, Any], dict[str, Any]], str]] = {
    "contact": _render_contact,
    "vault": _render_vault,
    "songs": _render_songs,
    "videos": _render_videos,
    "tour": _render_tour,
    "press": _render_press,
    "custom": _render_custom,
}


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_HEAD_PARTIAL = """<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
{{#font_import}}<link rel="stylesheet" href="{{font_import}}">{{/font_import}}
<style>
  :root { --bg: {{bg}}; --accent: {{accent}}; --fg: {{fg}}; --font: {{{font_family}}}; }
  body { margin: 0; background: var(--bg); color: var(--fg); font-family: var(--font); }
  a { color: var(--accent); }
  main { max-width: 960px; margin: 0 auto; padding: 32px 24px 96px; }
  section { margin-bottom: 48px; }
  .hero img { width: 100%; max-height: 60vh; object-fit: cover; }
  .notice { padding: 12px 16px; border: 1px solid var(--accent); margin-bottom: 24px; }
</style>"""

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<title>{{display_name}} - EPK</title>
{{> head}}
</head>
<body>
<header class="hero">
  {{#hero_image}}<img src="{{hero_image}}" alt="{{display_name}}">{{/hero_image}}
  <h1>{{display_name}}</h1>
  <p class="tagline">{{tagline}}</p>
  {{#socials}}<a class="social social-{{platform}}" href="{{href}}" rel="noopener">{{label}}</a> {{/socials}}
</header>
<main>
  {{#notice}}<div class="notice" role="alert">{{notice}}</div>{{/notice}}
  {{#unlocked}}<a class="gate gate-unlocked" href="{{base}}">Lock vault</a>{{/unlocked}}
  {{^unlocked}}
  <form class="gate gate-locked" method="post" action="{{base}}/unlock">
    <label>Promoter Access <input type="password" name="pin" inputmode="numeric" maxlength="4" placeholder="0000"></label>
    <button type="submit">Unlock Vault</button>
  </form>
  {{/unlocked}}
  {{#bio}}<section id="about"><h2>About</h2><p>{{bio}}</p></section>{{/bio}}
  {{{sections_html}}}
</main>
<footer><a href="/">Made with Playback</a></footer>
</body>
</html>
"""

_MESSAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{{title}}</title></head>
<body style="background:#000;color:#fff;font-family:sans-serif;display:flex;flex-direction:column;align-items:center;justify-content:center;height:100vh;margin:0;">
  <h1>{{title}}</h1>
  <p>{{message}}</p>
  {{#reload}}<a href="" style="color:#000;background:#fff;padding:8px 16px;border-radius:8px;text-decoration:none;">Reload Application</a>{{/reload}}
</body>
</html>
"""

_CONTACT_TEMPLATE = """<section id="{{id}}" class="section-contact">
  <h2>{{title}}</h2>
  <p class="manager-name">{{name}}</p>
  {{#mailto}}<a class="manager-email" href="{{mailto}}">{{email}}</a>{{/mailto}}
</section>"""

_VAULT_TEMPLATE = """<section id="{{id}}" class="section-vault">
  <h2>{{title}}</h2>
  <p class="badge">PRO ACCESS UNLOCKED</p>
  {{#assets}}
  <form method="post" action="{{action}}">
    <input type="hidden" name="pin" value="{{pin}}">
    <button type="submit" class="asset asset-{{asset}}">{{label}}</button>
  </form>
  {{/assets}}
  <a class="one-sheet" href="{{one_sheet}}" target="_blank">One Sheet (PDF)</a>
  {{#qr_url}}<a class="qr" href="{{qr_url}}" target="_blank" rel="noopener">QR Code</a>{{/qr_url}}
</section>"""

_SONGS_TEMPLATE = """<section id="{{id}}" class="section-songs">
  <h2>{{title}}</h2>
  <ol>
  {{#songs}}
    <li><span class="song-title">{{title}}</span> <span class="duration">{{duration}}</span>
    {{#audio_url}}<audio controls preload="none" src="{{audio_url}}"></audio>{{/audio_url}}</li>
  {{/songs}}
  </ol>
</section>"""

_VIDEOS_TEMPLATE = """<section id="{{id}}" class="section-videos">
  <h2>{{title}}</h2>
  {{#videos}}
  <figure>
    {{#youtube_id}}<iframe src="https://www.youtube.com/embed/{{youtube_id}}" title="{{title}}" allowfullscreen></iframe>{{/youtube_id}}
    {{^youtube_id}}{{#url}}<a href="{{url}}" rel="noopener">{{title}}</a>{{/url}}{{/youtube_id}}
    <figcaption>{{title}}</figcaption>
  </figure>
  {{/videos}}
</section>"""

_TOUR_TEMPLATE = """<section id="{{id}}" class="section-tour">
  <h2>{{title}}</h2>
  <ul>
  {{#dates}}
    <li><span class="date">{{day}} {{month}}</span> <strong>{{venue}}</strong> <span class="city">{{city}}</span>
    {{#ticket_url}}<a href="{{ticket_url}}" rel="noopener">Tickets</a>{{/ticket_url}}</li>
  {{/dates}}
  </ul>
</section>"""

_PRESS_TEMPLATE = """<section id="{{id}}" class="section-press">
  <h2>{{title}}</h2>
  {{#press}}
  <blockquote>&ldquo;{{quote}}&rdquo;
    <cite>{{#link}}<a href="{{link}}" rel="noopener">{{publication}}</a>{{/link}}{{^link}}{{publication}}{{/link}}</cite>
  </blockquote>
  {{/press}}
</section>"""

_CUSTOM_TEMPLATE = """<section id="{{id}}" class="section-custom">
  <h2>{{title}}</h2>
  {{#is_text}}<p>{{content}}</p>{{/is_text}}
  {{#is_image}}<img src="{{media}}" alt="{{title}}">{{/is_image}}
  {{#is_audio}}<audio controls preload="none" src="{{media}}"></audio>{{/is_audio}}
  {{#is_link}}<a href="{{url}}" rel="noopener">{{#content}}{{content}}{{/content}}{{^content}}{{url}}{{/content}}</a>{{/is_link}}
  {{#is_video}}{{#youtube_id}}<iframe src="https://www.youtube.com/embed/{{youtube_id}}" title="{{title}}" allowfullscreen></iframe>{{/youtube_id}}{{^youtube_id}}{{#url}}<a href="{{url}}" rel="noopener">{{url}}</a>{{/url}}{{/youtube_id}}{{/is_video}}
</section>"""

_ONE_SHEET_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<title>{{display_name}} - EPK</title>
{{> head}}
<style>
  * { -webkit-print-color-adjust: exact; print-color-adjust: exact; }
  .page { max-width: 800px; margin: 0 auto; padding: 40px; }
  .header { display: flex; gap: 40px; align-items: center; border-bottom: 2px solid var(--accent); padding-bottom: 30px; }
  .hero-img { width: 200px; height: 200px; object-fit: cover; border-radius: 12px; }
  .grid { display: grid; grid-template-columns: 1.5fr 1fr; gap: 40px; }
  .bio { white-space: pre-wrap; line-height: 1.6; }
</style>
</head>
<body>
<div class="page">
  <div class="header">
    {{#hero_image}}<img class="hero-img" src="{{hero_image}}" alt="">{{/hero_image}}
    <div class="title">
      <h1>{{display_name}}</h1>
      <p>{{tagline}}</p>
      {{#socials}}<a href="{{url}}">{{label}}</a> {{/socials}}
    </div>
  </div>
  <div class="grid">
    <div>
      <h2>Biography</h2>
      <p class="bio">{{bio}}</p>
      {{#has_songs}}<h2>Popular Tracks</h2>
      {{#songs}}<div class="track">{{n}} {{title}} <span>{{duration}}</span></div>{{/songs}}{{/has_songs}}
      {{#has_press}}<h2>Press</h2>
      {{#press}}<div class="quote">&ldquo;{{quote}}&rdquo; <strong>{{publication}}</strong></div>{{/press}}{{/has_press}}
    </div>
    <div>
      {{#has_tour}}<h2>Upcoming Tour</h2>
      {{#tour}}<div class="show"><strong>{{day}} {{month}}</strong> {{venue}} <span>{{city}}</span></div>{{/tour}}{{/has_tour}}
      <div class="box">
        <span class="contact-label">Contact</span>
        <strong>{{manager_name}}</strong>
        {{#mailto}}<a href="{{mailto}}">{{manager_email}}</a>{{/mailto}}
        {{#live_url}}<span class="contact-label">Live EPK Link</span><a href="{{live_url}}">{{live_url}}</a>{{/live_url}}
      </div>
      <div class="qr"><img src="{{qr_url}}" width="100" height="100" alt="QR code"><div>Scan for Info</div></div>
    </div>
  </div>
  <div class="footer">Generated by Playback &bull; The Professional EPK Platform</div>
</div>
<script>window.onload = function () { setTimeout(function () { window.print(); }, 500); };</script>
</body>
</html>
"""
