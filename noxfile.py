"""Automation sessions for tests, linting, type-checking and security scanning.

Nox creates reproducible virtual environments for pytest, Ruff (lint/format),
MyPy (type checks) and Bandit (security). Run ``nox -s tests`` for the suite.
"""

import nox

nox.options.sessions = ("tests", "ruff", "mypy", "bandit")
nox.options.reuse_existing_virtualenvs = True
nox.options.default_venv_backend = "uv|virtualenv"

SILENT_DEFAULT = True
SILENT_CODE_MODIFIERS = False

PACKAGE_NAME = "graph_lp_eval"
PROJECT_LOCATION = "."
PYTHON_VERSIONS = ["3.12", "3.13"]


@nox.session(python=PYTHON_VERSIONS, tags=["test"])
def tests(session: nox.Session) -> None:
    """Install the package with its test extra and run pytest."""
    _install(session, "-e", f"{PROJECT_LOCATION}[test]")
    _run(session, "pytest", *session.posargs, silent=False)


@nox.session(python=PYTHON_VERSIONS[-1], tags=["lint", "format"])
def ruff(session: nox.Session) -> None:
    """Run Ruff to lint the codebase and apply formatting."""
    args = session.posargs or (PROJECT_LOCATION,)
    _install(session, "ruff")
    _run(session, "ruff", "check", *args)
    _run_code_modifier(session, "ruff", "format", *args)


@nox.session(python=PYTHON_VERSIONS[-1], tags=["typecheck"])
def mypy(session: nox.Session) -> None:
    """Verify static types of the package using MyPy."""
    args = session.posargs or (PACKAGE_NAME,)
    # Install the project so mypy sees the installed dependencies
    _install(session, PROJECT_LOCATION)
    _install(session, "mypy", "types-PyYAML", "pandas-stubs")
    _run(session, "mypy", *args)


@nox.session(python=PYTHON_VERSIONS[-1], tags=["security"])
def bandit(session: nox.Session) -> None:
    """Scan the package for common security issues using Bandit."""
    args = session.posargs or ("-r", PACKAGE_NAME)
    _install(session, "bandit")
    _run(session, "bandit", *args)


def _install(session: nox.Session, *args: str) -> None:
    """Install pip packages into the active Nox session."""
    if args:
        session.install(*args)


def _run(
    session: nox.Session,
    target: str,
    *args: str,
    silent: bool = SILENT_DEFAULT,
) -> None:
    """Run a command within the Nox session with standard options."""
    session.run(target, *args, external=True, silent=silent)


def _run_code_modifier(session: nox.Session, target: str, *args: str) -> None:
    """Run a code-modifying command with a less silent default."""
    _run(session, target, *args, silent=SILENT_CODE_MODIFIERS)
