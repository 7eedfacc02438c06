"""Small lxml helpers for classes, inline styles and role-tagged children."""

from lxml.html import HtmlElement


def has_class(el: HtmlElement, name: str) -> bool:
    return name in (el.get("class") or "").split()


def add_class(el: HtmlElement, name: str) -> None:
    classes = (el.get("class") or "").split()
    if name not in classes:
        classes.append(name)
        el.set("class", " ".join(classes))


def _parse_style(style: str | None) -> dict[str, str]:
    out: dict[str, str] = {}
    for decl in (style or "").split(";"):
        prop, sep, value = decl.partition(":")
        if sep and prop.strip():
            out[prop.strip().lower()] = value.strip()
    return out


def get_style(el: HtmlElement, prop: str) -> str | None:
    return _parse_style(el.get("style")).get(prop)


def set_style(el: HtmlElement, prop: str, value: str, important: bool = False) -> None:
    decls = _parse_style(el.get("style"))
    decls[prop] = f"{value} !important" if important else value
    el.set("style", "; ".join(f"{k}: {v}" for k, v in decls.items()))


def remove_role(parent: HtmlElement, role: str) -> int:
    """Remove direct children carrying the role class; returns how many."""
    stale = [child for child in parent if isinstance(child.tag, str) and has_class(child, role)]
    for child in stale:
        # keep text that followed the removed node
        if child.tail:
            prev = child.getprevious()
            if prev is not None:
                prev.tail = (prev.tail or "") + child.tail
            else:
                parent.text = (parent.text or "") + child.tail
        parent.remove(child)
    return len(stale)


def find_code_elements(root: HtmlElement) -> list[HtmlElement]:
    """Every ``pre > code`` under (or at) root, in document order."""
    return root.xpath("descendant-or-self::pre/code")


def role_children(parent: HtmlElement, role: str) -> list[HtmlElement]:
    return [child for child in parent if isinstance(child.tag, str) and has_class(child, role)]
