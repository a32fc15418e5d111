"""floq -- record and review your hours in Floq from the terminal.

Logging in uses an OAuth2 authorization-code flow with PKCE: the browser
redirects to a short-lived listener on ``127.0.0.1``, the code is exchanged
for tokens, and the result is stored in ``~/.floq/user-config.toml``. Later
commands reuse the stored access token and refresh it silently when it is
about to expire.

Typical workflow::

    floq login                     # once, in the browser
    floq projects                  # what you worked on lately
    floq hours track PRJ1001       # 7.5 hours today
    floq hours history             # this week at a glance

Modules:
    app: Typer application and CLI entry point.
    auth: Browser login, token refresh and credential storage.
    client: Floq API client.
    models: Pydantic models shared across the package.
    config: Settings and the state directory.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    timestamps: Hours formatting and week arithmetic.
"""

__version__ = "0.3.0"
