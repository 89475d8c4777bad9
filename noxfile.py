import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project with test extras into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run in-memory and mocked tests across Python versions."""
    _install(session)
    session.run("pytest", "--cov=acktrack", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def full(session: nox.Session) -> None:
    """Run the full test suite, including live Redis tests."""
    _install(session)
    session.run("pytest", "--redis", *session.posargs)
