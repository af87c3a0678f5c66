from typing import Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from crm_panel.client.debounce import DEFAULT_DEBOUNCE_SECONDS, Debouncer
from crm_panel.logging_config import get_child_logger

logger = get_child_logger("client.filters")

# Receives the target URL; navigation always replaces the history entry
Navigate = Callable[[str], None]


def build_query_params(
    current: Mapping[str, str], values: Mapping[str, Optional[str]]
) -> Dict[str, str]:
    """
    Merge filter values into the current query parameters.
    Empty or missing values remove the parameter instead of encoding "".
    """
    params = dict(current)
    for name, value in values.items():
        if value:
            params[name] = value
        else:
            params.pop(name, None)
    return params


def build_url(route: str, params: Mapping[str, str]) -> str:
    if not params:
        return route
    return f"{route}?{urlencode(params)}"


class FilterUrlSynchronizer:
    """
    Mirrors debounced filter inputs into the page URL.

    Each filter field gets its own debouncer. When one settles, the candidate
    parameters are compared with the URL; a navigation happens only if a
    filter field actually differs, so typing and deleting back to the
    original text costs nothing.
    """

    def __init__(
        self,
        route: str,
        navigate: Navigate,
        current_params: Optional[Mapping[str, str]] = None,
        fields: Tuple[str, ...] = ("search", "color"),
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.route = route
        self.fields = fields
        self._navigate = navigate
        self._params: Dict[str, str] = dict(current_params or {})
        self._inputs: Dict[str, Debouncer[str]] = {}
        for name in fields:
            debouncer = Debouncer(self._params.get(name, ""), delay)
            debouncer.subscribe(lambda _value: self.sync())
            self._inputs[name] = debouncer

    @property
    def params(self) -> Dict[str, str]:
        return dict(self._params)

    def value(self, name: str) -> str:
        return self._inputs[name].value

    def update(self, name: str, value: Optional[str]) -> None:
        """Feed a raw input change for one filter field."""
        if name not in self._inputs:
            raise ValueError(f"Unknown filter field '{name}'. Valid options: {list(self.fields)}")
        self._inputs[name].push(value or "")

    def url_changed(self, params: Mapping[str, str]) -> None:
        """Record a navigation that happened elsewhere (back button, links)."""
        previous = self._params
        self._params = dict(params)
        for name, debouncer in self._inputs.items():
            # Fields the navigation left alone keep any text still being typed
            if self._params.get(name, "") != previous.get(name, ""):
                debouncer.reset(self._params.get(name, ""))

    def sync(self) -> bool:
        """
        Navigate if the settled filter values differ from the URL.

        Returns:
            True if a navigation was issued
        """
        settled = {name: debouncer.value for name, debouncer in self._inputs.items()}
        changed = any(
            (settled[name] or "") != self._params.get(name, "") for name in self.fields
        )
        if not changed:
            return False

        self._params = build_query_params(self._params, settled)
        url = build_url(self.route, self._params)
        logger.debug("Filter navigation", extra={"url": url})
        self._navigate(url)
        return True

    def clear(self) -> None:
        """Reset every filter and go straight to the bare route, skipping the debounce."""
        for debouncer in self._inputs.values():
            debouncer.reset("")
        self._params = {}
        self._navigate(self.route)
