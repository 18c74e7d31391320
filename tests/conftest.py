import pytest

from cfp_forms.builder import SchemaFormBuilder
from cfp_forms.extractor import SchemaFormDataExtractor
from cfp_forms.processor import AssessmentFormProcessor

from helpers.utils import load_pathway


@pytest.fixture
def builder():
    return SchemaFormBuilder()

@pytest.fixture
def extractor():
    return SchemaFormDataExtractor()

@pytest.fixture
def processor():
    return AssessmentFormProcessor()

@pytest.fixture(scope="session")
def paddy_rice():
    """The shipped paddy rice pathway schema, as decoded YAML."""
    return load_pathway("paddy_rice")
