"""
L0 Data — Update failure classification rules.

Ordered: the first rule whose markers appear in the command output
wins. Each rule is a plain dict so new failure signatures can be added
without touching the classifier:

    reason      short tag stored in ``UpdateResult.reason``
    markers     substrings matched case-sensitively
    markers_ci  substrings matched against the lower-cased output
    all_of_ci   groups of substrings that must ALL appear (lower-cased)
    command     optional command predicate the rule is restricted to
    retry_once  a match is worth exactly one retry, checked regardless
                of rule order
    hint        one-line remediation appended to the explanation

Structural failures (timeout, interrupt) are not in this table: they
are recognized from the runner's own flags before any output is inspected.
"""

from __future__ import annotations

REASON_QUOTA = "quota"
REASON_NPM_ENOTEMPTY = "npm ENOTEMPTY"
REASON_PERMISSION = "permission"
REASON_NETWORK = "network"
REASON_TLS = "tls"
REASON_BREW_BUSY = "brew busy"

# Command predicates understood by the classifier.
CMD_NPM_GLOBAL_MUTATE = "npm-global-mutate"
CMD_BREW = "brew"


FAILURE_RULES: list[dict] = [

    # ── Provider quota (agent-side, any manager) ────────────────
    {
        "reason": REASON_QUOTA,
        "markers": ["TerminalQuotaError"],
        "markers_ci": ["exhausted your capacity", "quota will reset"],
        "hint": "quota exceeded; retry later or update via npm (@google/gemini-cli)",
    },

    # ── npm rename race on the global prefix ────────────────────
    # npm renames the old package dir to ``.<name>-<hash>`` before
    # extracting; a leftover from a crashed run makes that rename fail.
    {
        "reason": REASON_NPM_ENOTEMPTY,
        "command": CMD_NPM_GLOBAL_MUTATE,
        "markers": ["ENOTEMPTY", "errno -66"],
        "markers_ci": ["directory not empty"],
        "retry_once": True,
        "hint": (
            "npm rename failed; retry or remove leftover temp directory "
            "under the global npm prefix"
        ),
    },

    # ── Filesystem permissions ──────────────────────────────────
    {
        "reason": REASON_PERMISSION,
        "markers_ci": ["eacces", "eperm", "permission denied"],
        "hint": "permission error; check your global install prefix and file permissions",
    },

    # ── Network ─────────────────────────────────────────────────
    {
        "reason": REASON_NETWORK,
        "markers_ci": [
            "etimedout",
            "timed out",
            "econnreset",
            "enotfound",
            "eai_again",
            "econnrefused",
            "socket hang up",
        ],
        "hint": "network error; check connectivity/proxy/VPN and retry",
    },

    # ── TLS / CA trust ──────────────────────────────────────────
    {
        "reason": REASON_TLS,
        "markers_ci": [
            "self signed certificate",
            "unable to get local issuer certificate",
            "cert has expired",
            "ssl routines",
        ],
        "all_of_ci": [["tls", "certificate"]],
        "hint": "TLS/CA error; check corporate proxy settings or system certificates",
    },

    # ── Homebrew lock ───────────────────────────────────────────
    {
        "reason": REASON_BREW_BUSY,
        "command": CMD_BREW,
        "markers_ci": [
            "another active homebrew update process",
            "homebrew is already updating",
            "cannot install in homebrew prefix",
        ],
        "hint": "homebrew is locked/busy; wait for other brew process and retry",
    },
]


BATCH_FALLBACK_HINT = "batch update failed; retrying individually"
CANCELED_HINT = "interrupted; retry the update"
TIMEOUT_HINT = "command timed out after {seconds}s; rerun with --timeout 0 or increase it"
