"""
Pre-submission validation per encoding mode.
"""
from models import FieldSpec, WorkflowConfiguration
from services.submission_validator import describe_failure, validate_submission
from services.xml_encoder import Dynamic, LegacyAgent, LegacyGeneral


def _dynamic_mode():
    return Dynamic(WorkflowConfiguration(
        workflow_name="Dynamic Flow",
        fields=[
            FieldSpec(name="Customer_Name", label="Customer Name"),
            FieldSpec(name="Contact_Email", label="Contact Email", type="email"),
            FieldSpec(name="Notes", label="Notes", required=False),
        ],
    ))


def _agent_values(**overrides):
    values = {
        "agentName": "Jane",
        "agentRole": "Sales",
        "agentTelephone": "0700",
        "clientRegistrationData": "Acme",
        "salesSegment": "SME",
        "contractDuration": "24",
        "contractRouting": "standard",
        "chosenService": "Red",
    }
    values.update(overrides)
    return values


def test_dynamic_required_fields():
    result = validate_submission({"Contact_Email": "a@b.co"}, _dynamic_mode())
    assert result["valid"] is False
    assert result["missing"] == ["Customer_Name"]
    assert result["errors"] == [{"field_key": "Customer_Name", "message": "Customer Name is required"}]


def test_dynamic_whitespace_counts_as_missing():
    result = validate_submission({"Customer_Name": "   ", "Contact_Email": "a@b.co"}, _dynamic_mode())
    assert result["missing"] == ["Customer_Name"]


def test_dynamic_email_format():
    result = validate_submission({"Customer_Name": "Acme", "Contact_Email": "not-an-email"}, _dynamic_mode())
    assert result["valid"] is False
    assert result["missing"] == []
    assert result["errors"][0]["field_key"] == "Contact_Email"


def test_dynamic_valid_without_optional_field():
    result = validate_submission({"Customer_Name": "Acme", "Contact_Email": "ops@acme.com"}, _dynamic_mode())
    assert result == {"valid": True, "errors": [], "missing": []}


def test_legacy_general_required_and_email():
    result = validate_submission({"email": "bad", "phone": ""}, LegacyGeneral())
    assert result["missing"] == ["phone", "productCategory"]
    assert {"field_key": "email", "message": "Please enter a valid email address"} in result["errors"]


def test_legacy_general_quantity_checked_when_product_selected():
    values = {"email": "a@b.co", "phone": "1", "productCategory": "mobile",
              "selectedProduct": "mob_red_plus", "quantity": "0"}
    result = validate_submission(values, LegacyGeneral())
    assert result["missing"] == ["quantity"]

    values["quantity"] = "2"
    assert validate_submission(values, LegacyGeneral())["valid"] is True


def test_legacy_agent_required():
    result = validate_submission(_agent_values(chosenService=""), LegacyAgent())
    assert result["missing"] == ["chosenService"]


def test_legacy_agent_email_optional_but_checked_when_present():
    assert validate_submission(_agent_values(), LegacyAgent())["valid"] is True
    result = validate_submission(_agent_values(email="nope"), LegacyAgent())
    assert result["valid"] is False
    assert result["errors"][0]["field_key"] == "email"


def test_describe_failure():
    result = validate_submission({}, LegacyGeneral())
    assert describe_failure(result) == "Please fill in all required fields: email, phone, productCategory"

    result = validate_submission({"email": "x", "phone": "1", "productCategory": "iot"}, LegacyGeneral())
    assert describe_failure(result) == "Please enter a valid email address"
