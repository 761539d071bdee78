"""Viewport profiles used when capturing screenshots.

Each profile is a named screen size. Screenshots, diff masks and report
sections are keyed by the profile key (``mobile``, ``laptop``, ``desktop``).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ViewportProfile:
    """Named viewport size."""

    key: str
    name: str
    width: int
    height: int

    @property
    def viewport(self) -> dict[str, int]:
        """Get viewport dict for Playwright."""
        return {"width": self.width, "height": self.height}

    @property
    def dimensions(self) -> str:
        """Human-readable size, e.g. ``390×844``."""
        return f"{self.width}×{self.height}"


VIEWPORTS: dict[str, ViewportProfile] = {
    "mobile": ViewportProfile(key="mobile", name="Mobile (iPhone 14)", width=390, height=844),
    "laptop": ViewportProfile(key="laptop", name="Laptop (MacBook)", width=1440, height=900),
    "desktop": ViewportProfile(key="desktop", name="Desktop (Full HD)", width=1920, height=1080),
}


def get_viewport(name: str) -> ViewportProfile | None:
    """Get a viewport profile by key (case-insensitive, flexible matching)."""
    key = name.strip().lower().replace(" ", "_").replace("-", "_")
    return VIEWPORTS.get(key)


def resolve_viewports(names: list[str] | tuple[str, ...] | None = None) -> list[ViewportProfile]:
    """Resolve viewport keys to profiles, keeping the requested order.

    With no names, every known viewport is returned.

    Raises:
        ValueError: If a name does not match any profile.
    """
    if not names:
        return list(VIEWPORTS.values())

    profiles = []
    for name in names:
        profile = get_viewport(name)
        if profile is None:
            known = ", ".join(VIEWPORTS)
            raise ValueError(f"Unknown viewport {name!r} (expected one of: {known})")
        if profile not in profiles:
            profiles.append(profile)
    return profiles
