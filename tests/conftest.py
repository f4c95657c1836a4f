import copy
import logging
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from libefris.utils import load_json_file

REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURES_DIR = REPO_ROOT / "tests" / "fixtures"


def load_fixture(name: str):
    return load_json_file(FIXTURES_DIR / name)


@pytest.fixture()
def invoice() -> dict:
    """A T109 invoice upload that passes every rule: discounted line, discount line, plain line."""
    return copy.deepcopy(load_fixture("t109_invoice.json"))


@pytest.fixture()
def credit_note() -> dict:
    return copy.deepcopy(load_fixture("t110_credit_note.json"))


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture()
def reset_logging():
    """Undo setup_logging so later tests do not write to a closed stream."""
    yield
    logger = logging.getLogger("libefris")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
