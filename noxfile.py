import nox
from nox import options

options.sessions = ["format", "mypy", "tests"]


@nox.session
def tests(session):
    session.install("-e", ".[test]")
    session.run("pytest", *session.posargs)


@nox.session
def mypy(session):
    session.install("mypy")
    session.run("mypy")


@nox.session
def format(session):
    session.install("isort")
    session.run("isort", "linecmd", "tests")


@nox.session(reuse_venv=True)
def docs(session):
    session.install("pdoc3")
    session.run("pdoc", "--html", "linecmd", "--force", "-o", "docs")
