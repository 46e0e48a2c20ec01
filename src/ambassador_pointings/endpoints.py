"""Environment selection and derived endpoint URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import Config


ENVIRONMENT_LABELS = ("demo", "qa", "custom")
DEFAULT_ARMOR_PORT = "8080"
HOST_NUMBER_PLACEHOLDER = "X"

_SCHEME_RE = re.compile(r"^(https?)://", re.IGNORECASE)
_HYPHEN_NUMBER_RE = re.compile(r"-([0-9]+)$")
_TRAILING_NUMBER_RE = re.compile(r"([0-9]+)$")

_ARMOR_PREFIXES = {
    "demo": "dev",
    "qa": "qa",
}


@dataclass(frozen=True)
class Environment:
    """The Ambassador instance the shell is currently talking to."""

    label: str
    fqdn: str
    base_url: str


def default_fqdn(label: str, config: Config) -> str:
    if label == "qa":
        return config.qa_fqdn
    if label in ("demo", "custom"):
        return config.demo_fqdn
    raise ValueError(f"Unknown environment: {label}")


def build_base_url(fqdn: str, scheme: str = "http") -> str:
    """Prefix `fqdn` with `scheme` unless it already carries one."""

    fqdn = fqdn.strip()
    base = fqdn if _SCHEME_RE.match(fqdn) else f"{scheme}://{fqdn}"
    return base.rstrip("/")


def resolve_environment(choice: str, raw_fqdn: Optional[str], config: Config) -> Environment:
    """Build an `Environment` for one of the known labels.

    A blank `raw_fqdn` falls back to the label's configured default. The host
    is not contacted here; unreachable hosts surface on the first request.
    """

    label = choice.strip().lower()
    if label not in ENVIRONMENT_LABELS:
        raise ValueError(f"Unknown environment: {choice}")
    fqdn = (raw_fqdn or "").strip() or default_fqdn(label, config)
    return Environment(label=label, fqdn=fqdn, base_url=build_base_url(fqdn, config.scheme))


def split_host_port(fqdn: str) -> Tuple[str, str]:
    """Split `host[:port]`, defaulting the port to 8080.

    Any scheme prefix or path suffix is ignored.
    """

    authority = _SCHEME_RE.sub("", fqdn.strip()).split("/", 1)[0]
    host, sep, port = authority.rpartition(":")
    if not sep or not host or not port.isdigit():
        return authority.rstrip(":"), DEFAULT_ARMOR_PORT
    return host, port


def extract_host_number(host: str) -> str:
    """Return the numeric suffix of `host`.

    `dev-ambassador-22` gives `22` and `qa-ambassador5` gives `5`. The whole
    host is matched, so `dev-ambassador-22.birdeye.internal` has no suffix and
    gives `X`.
    """

    match = _HYPHEN_NUMBER_RE.search(host) or _TRAILING_NUMBER_RE.search(host)
    return match.group(1) if match else HOST_NUMBER_PLACEHOLDER


def derive_health_url(env_label: str, fqdn: str, config: Config) -> str:
    """Guess the Armor health-check URL paired with an Ambassador host."""

    host, port = split_host_port(fqdn)
    explicit = _SCHEME_RE.match(fqdn.strip())
    scheme = explicit.group(1).lower() if explicit else config.scheme
    prefix = _ARMOR_PREFIXES.get(env_label)
    if prefix is None:
        armor_host = config.armor_fallback_host
    else:
        armor_host = f"{prefix}-armor{extract_host_number(host)}.{config.armor_domain}"
    return f"{scheme}://{armor_host}:{port}{config.health_path}"
