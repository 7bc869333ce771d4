"""
Admin Workflow Configuration Routes

Dynamic mode setup for the signup form:
- Infer fields from an example CLM Params document
- Save (full replace) / read / clear the workflow configuration

An empty field list keeps the form in legacy mode.
"""
from fastapi import APIRouter, HTTPException
import logging

from models import InferConfigurationRequest, WorkflowConfiguration
from services import clm_settings_store
from services.form_renderer import describe_form
from services.xml_schema_inferencer import build_configuration

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin/workflow-config", tags=["admin-workflow-config"])


@router.get("")
async def get_configuration():
    configuration = await clm_settings_store.get_workflow_configuration()
    if not configuration:
        raise HTTPException(status_code=404, detail="No workflow configuration saved")
    return {
        "configuration": configuration.model_dump(mode="json"),
        "dynamic_enabled": configuration.is_dynamic,
    }


@router.put("")
async def replace_configuration(configuration: WorkflowConfiguration):
    """Replace the whole configuration. Partial updates are not supported."""
    if not configuration.workflow_name.strip():
        raise HTTPException(status_code=400, detail="Workflow name is required")
    stored = await clm_settings_store.save_workflow_configuration(configuration)
    return {
        "configuration": stored.model_dump(mode="json"),
        "dynamic_enabled": stored.is_dynamic,
    }


@router.delete("")
async def clear_configuration():
    cleared = await clm_settings_store.clear_workflow_configuration()
    return {"cleared": cleared}


@router.post("/infer")
async def infer_configuration(body: InferConfigurationRequest, persist: bool = False):
    """Infer fields from an example Params document; optionally save the result."""
    if not body.workflow_name.strip():
        raise HTTPException(status_code=400, detail="Workflow name is required")
    configuration = build_configuration(body.workflow_name, body.example_params)

    if not configuration.fields:
        logger.info("Example params produced no fields; dynamic mode stays disabled")
    if persist:
        configuration = await clm_settings_store.save_workflow_configuration(configuration)

    return {
        "configuration": configuration.model_dump(mode="json"),
        "dynamic_enabled": configuration.is_dynamic,
        "form": describe_form(configuration),
        "persisted": persist,
    }
