"""
Designer — the visual assistant. Components, palettes, accessibility checks,
layout advice and icons.
"""

import colorsys
import logging
import re
from typing import Optional

from agents.base import BaseAgent, register_agent_class
from config import TTL_ONE_DAY, TTL_ONE_WEEK

logger = logging.getLogger(__name__)

PALETTES = {
    "professional": {
        "primary": "#2563eb", "secondary": "#64748b", "accent": "#0ea5e9",
        "background": "#f8fafc", "text": "#1e293b",
    },
    "playful": {
        "primary": "#ec4899", "secondary": "#8b5cf6", "accent": "#f59e0b",
        "background": "#fef3c7", "text": "#7c3aed",
    },
    "dark": {
        "primary": "#6366f1", "secondary": "#8b5cf6", "accent": "#06b6d4",
        "background": "#0f172a", "text": "#e2e8f0",
    },
    "nature": {
        "primary": "#10b981", "secondary": "#84cc16", "accent": "#14b8a6",
        "background": "#ecfdf5", "text": "#064e3b",
    },
}

BREAKPOINTS = {"mobile": "640px", "tablet": "768px", "desktop": "1024px"}

_HEX = re.compile(r"^#?([0-9a-fA-F]{6})$")

_ICON_PATHS = {
    "home": (
        '<path d="M3 12l2-2m0 0l7-7 7 7M5 10v10a1 1 0 001 1h3m10-11l2 2m-2-2v10'
        'a1 1 0 01-1 1h-3m-6 0a1 1 0 001-1v-4a1 1 0 011-1h2a1 1 0 011 1v4a1 1 0 001 1m-6 0h6" />'
    ),
    "user": (
        '<path d="M20 21v-2a4 4 0 0 0-4-4H8a4 4 0 0 0-4 4v2"></path>'
        '<circle cx="12" cy="7" r="4"></circle>'
    ),
    "settings": (
        '<circle cx="12" cy="12" r="3"></circle>'
        '<path d="M12 1v6m0 6v6m11-6h-6m-6 0H1"></path>'
    ),
}

_CARD_RULES = (
    "  padding: 1rem;\n"
    "  border-radius: 0.5rem;\n"
    "  background-color: #ffffff;\n"
    "  box-shadow: 0 1px 3px rgba(0, 0, 0, 0.1);\n"
)
_TITLE_RULES = (
    "  font-size: 1.5rem;\n"
    "  font-weight: 600;\n"
    "  margin-bottom: 1rem;\n"
)


# ── Color Math ──

def _hex_to_rgb(color: str) -> tuple[float, float, float]:
    match = _HEX.match(color.strip())
    if not match:
        raise ValueError(f"Not a hex color: {color}")
    raw = match.group(1)
    return tuple(int(raw[i:i + 2], 16) / 255 for i in (0, 2, 4))


def _rgb_to_hex(rgb: tuple[float, float, float]) -> str:
    return "#" + "".join(f"{round(max(0.0, min(1.0, c)) * 255):02x}" for c in rgb)


def adjust_lightness(color: str, delta: float) -> str:
    """Shift a hex color's HLS lightness by delta (-1..1)."""
    h, l, s = colorsys.rgb_to_hls(*_hex_to_rgb(color))
    return _rgb_to_hex(colorsys.hls_to_rgb(h, max(0.0, min(1.0, l + delta)), s))


def relative_luminance(color: str) -> float:
    def channel(c: float) -> float:
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = (channel(c) for c in _hex_to_rgb(color))
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(fg: str, bg: str) -> float:
    """WCAG 2 contrast ratio between two hex colors, 1.0 to 21.0."""
    a, b = sorted((relative_luminance(fg), relative_luminance(bg)), reverse=True)
    return round((a + 0.05) / (b + 0.05), 2)


def _wcag_rating(ratio: float) -> str:
    if ratio >= 7:
        return "AAA"
    if ratio >= 4.5:
        return "AA"
    if ratio >= 3:
        return "AA large text"
    return "Fail"


@register_agent_class
class DesignerAgent(BaseAgent):
    AGENT_ID = "designer"

    def tool_handlers(self):
        return {
            "generate_component": self.generate_component,
            "suggest_colors": self.suggest_colors,
            "check_accessibility": self.check_accessibility,
            "optimize_layout": self.optimize_layout,
            "generate_icons": self.generate_icons,
        }

    # ── Tools ──

    async def generate_component(self, component_name: str, description: str,
                                 styling: str, framework: str = "react",
                                 props: Optional[list[dict]] = None) -> dict:
        props = props or []
        if framework not in ("react", "nextjs"):
            return {"success": False, "error": f"Unsupported framework: {framework}"}

        code = {
            "component": self._react_component(component_name, description, props, styling),
            "styles": self._styles(component_name, styling),
        }
        await self.remember(
            self.artifact_key(f"component_{component_name}_"),
            {"component_name": component_name, "description": description,
             "framework": framework, "styling": styling, "props": props, "code": code},
            ttl_seconds=TTL_ONE_WEEK,
        )
        required = " ".join(f"{p['name']}={{}}" for p in props if p.get("required"))
        return {
            "success": True,
            "component_name": component_name,
            "framework": framework,
            "styling": styling,
            "code": code,
            "usage": f"<{component_name} {required} />" if required else f"<{component_name} />",
        }

    async def suggest_colors(self, theme: str, base_color: Optional[str] = None,
                             count: int = 5) -> dict:
        palette = dict(PALETTES.get(theme, PALETTES["professional"]))
        if base_color:
            if not _HEX.match(base_color.strip()):
                return {"success": False, "error": f"Invalid hex color: {base_color}"}
            palette["primary"] = _rgb_to_hex(_hex_to_rgb(base_color))

        suggestion = {
            "success": True,
            "theme": theme,
            "base_color": base_color,
            "palette": palette,
            "variations": self._variations(palette["primary"], int(count)),
            "accessibility": {"contrast_ratios": self._contrast_report(palette)},
        }
        await self.remember(self.artifact_key(f"colors_{theme}_"), suggestion,
                            ttl_seconds=TTL_ONE_DAY)
        return suggestion

    def check_accessibility(self, html: str, level: str = "AA") -> dict:
        issues = []
        if "<img" in html and "alt=" not in html:
            issues.append({"severity": "error", "type": "missing-alt",
                           "message": "Images must have alt text", "wcag": "1.1.1"})
        if "<button" in html and not re.search(r"aria-label|aria-labelledby", html):
            issues.append({"severity": "warning", "type": "button-label",
                           "message": "Buttons should have accessible labels", "wcag": "4.1.2"})
        if "color:" in html and "background-color:" not in html:
            issues.append({"severity": "warning", "type": "color-contrast",
                           "message": "Ensure sufficient color contrast", "wcag": "1.4.3"})

        levels = [int(h) for h in re.findall(r"<h([1-6])", html)]
        if any(b - a > 1 for a, b in zip(levels, levels[1:])):
            issues.append({"severity": "warning", "type": "heading-hierarchy",
                           "message": "Heading levels should not skip", "wcag": "1.3.1"})

        return {
            "success": True,
            "level": level,
            "issues": issues,
            "score": max(0, 100 - len(issues) * 10),
            "recommendations": self._recommendations(issues),
        }

    def optimize_layout(self, current_layout: str,
                        target_devices: Optional[list[str]] = None,
                        framework: str = "flexbox") -> dict:
        target_devices = target_devices or ["mobile", "tablet", "desktop"]
        optimizations = []
        if "float:" in current_layout:
            optimizations.append({
                "type": "modernization",
                "current": "float",
                "suggested": framework,
                "code": self._replace_floats(current_layout, framework),
            })

        responsive = current_layout + "\n\n/* Responsive Design */\n"
        for device in target_devices:
            if device in BREAKPOINTS:
                responsive += f"\n@media (min-width: {BREAKPOINTS[device]}) {{\n  /* {device} styles */\n}}\n"

        return {
            "success": True,
            "framework": framework,
            "target_devices": target_devices,
            "optimizations": optimizations,
            "responsive_code": responsive,
            "breakpoints": dict(BREAKPOINTS),
            "tips": [
                "Use relative units (rem, em, %) for better scalability",
                "Consider mobile-first approach",
                "Test on actual devices for best results",
            ],
        }

    def generate_icons(self, icon_name: str, style: str = "outline", size: int = 24) -> dict:
        fill = "currentColor" if style == "filled" else "none"
        body = _ICON_PATHS.get(icon_name.lower())
        if body is None:
            letter = icon_name[:1].upper()
            body = (
                '<circle cx="12" cy="12" r="10"></circle>'
                f'<text x="12" y="16" text-anchor="middle" font-size="12">{letter}</text>'
            )
        svg = (
            f'<svg width="{size}" height="{size}" viewBox="0 0 24 24" fill="{fill}" '
            f'stroke="currentColor" stroke-width="2">{body}</svg>'
        )
        component = re.sub(r"\W", "", icon_name.title()) or "Generic"
        return {
            "success": True,
            "icon_name": icon_name,
            "style": style,
            "size": size,
            "svg": svg,
            "usage": {"react": f"const {component}Icon = () => ({svg});", "html": svg},
        }

    # ── Helpers ──

    @staticmethod
    def _variations(color: str, count: int) -> list[str]:
        """The base color followed by progressively lighter and darker shades."""
        variations = [color]
        step = 1
        while len(variations) < max(count, 1):
            for sign in (1, -1):
                if len(variations) < count:
                    variations.append(adjust_lightness(color, sign * 0.1 * step))
            step += 1
        return variations

    @staticmethod
    def _contrast_report(palette: dict) -> dict:
        report = {}
        for name in ("text", "primary", "secondary", "accent"):
            ratio = contrast_ratio(palette[name], palette["background"])
            report[f"{name}_on_background"] = {"ratio": f"{ratio}:1", "rating": _wcag_rating(ratio)}
        return report

    @staticmethod
    def _recommendations(issues: list[dict]) -> list[str]:
        kinds = {i["type"] for i in issues}
        recommendations = []
        if "missing-alt" in kinds:
            recommendations.append("Add descriptive alt text to all images")
        if "button-label" in kinds:
            recommendations.append("Give icon-only buttons an aria-label")
        if "color-contrast" in kinds:
            recommendations.append("Use a contrast checker tool to ensure WCAG compliance")
        if "heading-hierarchy" in kinds:
            recommendations.append("Nest headings one level at a time")
        recommendations.append("Consider using an accessibility testing tool like axe-core")
        return recommendations

    @staticmethod
    def _replace_floats(layout: str, framework: str) -> str:
        if framework == "grid":
            return (
                "display: grid;\n"
                "grid-template-columns: repeat(auto-fit, minmax(250px, 1fr));\n"
                "gap: 1rem;"
            )
        layout = re.sub(r"float:\s*left;?", "display: flex;", layout)
        return re.sub(r"float:\s*right;?", "display: flex; justify-content: flex-end;", layout)

    @staticmethod
    def _react_component(name: str, description: str, props: list[dict], styling: str) -> str:
        lines = ["import React from 'react';"]
        if styling == "styled-components":
            lines.append("import styled from 'styled-components';")
        elif styling == "css-modules":
            lines.append(f"import styles from './{name}.module.css';")
        lines.append("")

        signature = "()"
        fc = "React.FC"
        if props:
            lines.append(f"interface {name}Props {{")
            for p in props:
                optional = "" if p.get("required") else "?"
                lines.append(f"  {p['name']}{optional}: {p.get('type', 'any')};")
            lines.extend(["}", ""])
            signature = f"({{ {', '.join(p['name'] for p in props)} }}: {name}Props)"
            fc = f"React.FC<{name}Props>"

        if styling == "tailwind":
            class_attr = 'className="p-4 rounded-lg bg-white shadow-sm"'
        elif styling == "css-modules":
            class_attr = "className={styles.container}"
        else:
            class_attr = f'className="{name.lower()}"'

        lines.append(f"const {name}: {fc} = {signature} => {{")
        lines.append("  return (")
        lines.append(f"    <div {class_attr}>")
        lines.append(f"      {{/* {description} */}}")
        lines.append(f"      <h2>{name}</h2>")
        for p in props:
            lines.append(f"      {{{p['name']} && <div>{{{p['name']}}}</div>}}")
        lines.extend(["    </div>", "  );", "};", "", f"export default {name};"])
        return "\n".join(lines)

    @staticmethod
    def _styles(name: str, styling: str) -> str:
        selector = name.lower()
        if styling == "css":
            return f".{selector} {{\n{_CARD_RULES}}}\n\n.{selector} h2 {{\n{_TITLE_RULES}}}\n"
        if styling == "css-modules":
            return f".container {{\n{_CARD_RULES}}}\n\n.title {{\n{_TITLE_RULES}}}\n"
        if styling == "styled-components":
            return (
                f"const Container = styled.div`\n{_CARD_RULES}`;\n\n"
                f"const Title = styled.h2`\n{_TITLE_RULES}`;\n"
            )
        if styling == "tailwind":
            return "/* Tailwind classes used: p-4 rounded-lg bg-white shadow-sm */"
        return ""
