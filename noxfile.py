"""Nox sessions for multi-environment testing and quality assurance."""

import nox

PYTHON_VERSIONS = ["3.12", "3.13", "3.14"]


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run test suite with coverage reporting.

    Args:
        session: The nox session object.
    """
    session.install("-e", ".[test]")
    session.run(
        "pytest",
        "--cov=folder_count",
        "--cov-report=term-missing:skip-covered",
        "--cov-fail-under=80",
        *session.posargs,
    )


@nox.session(python=PYTHON_VERSIONS[-1])
def property_tests(session: nox.Session) -> None:
    """Run only the hypothesis property tests with more examples."""
    session.install("-e", ".[test]")
    session.run("pytest", "-m", "property", "--hypothesis-profile=thorough", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def lint(session: nox.Session) -> None:
    """Run ruff linting and formatting checks.

    Args:
        session: The nox session object.
    """
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(python=PYTHON_VERSIONS[-1])
def typecheck(session: nox.Session) -> None:
    """Run basedpyright type checking."""
    session.install("-e", ".[test]", "basedpyright")
    session.run("basedpyright")


@nox.session(python=PYTHON_VERSIONS[-1])
def format(session: nox.Session) -> None:
    """Auto-format code with ruff."""
    session.install("ruff")
    session.run("ruff", "check", ".", "--fix")
    session.run("ruff", "format", ".")
