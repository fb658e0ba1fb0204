import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

# Rebuilt per interpreter; a cached wheel can carry a .so for another Python.
_C_EXT_PACKAGES = ["psycopg2"]

# Test layers by marker, see pytest_collection_modifyitems in tests/conftest.py
_LAYERS = ["domain", "application", "integration", "bdd"]


def _install(session: nox.Session) -> None:
    """Install the engine with its production and test extras."""
    session.run("poetry", "install", "--all-extras", external=True)
    session.run("pip", "install", "--force-reinstall", "--no-cache-dir", *_C_EXT_PACKAGES)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the whole suite."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
@nox.parametrize("layer", _LAYERS)
def layer(session: nox.Session, layer: str) -> None:
    """Run one test layer, e.g. ``nox -s "layer(layer='domain')"``."""
    _install(session)
    session.run("pytest", "-m", layer, *session.posargs)
