"""
CLM integration settings.

Values come from the environment (``backend/.env`` is loaded first) and are
collected into one explicit ``ClmSettings`` object that is handed to the
orchestrator and the relay routes instead of being read ad hoc.
"""
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

DEFAULT_CLM_BASE_URL = "https://apiuatna11.springcm.com/v2"
DEFAULT_OAUTH_TOKEN_URL = "https://account-d.docusign.com/oauth/token"
DEFAULT_LEGACY_WORKFLOW_NAME = "Vodafone Product Signup Workflow"


class ClmSettings(BaseModel):
    clm_base_url: str = DEFAULT_CLM_BASE_URL
    account_id: Optional[str] = None
    oauth_token_url: str = DEFAULT_OAUTH_TOKEN_URL
    relay_base_url: str = "http://localhost:8001"
    legacy_workflow_name: str = DEFAULT_LEGACY_WORKFLOW_NAME
    request_timeout: float = 30.0
    cors_origins: List[str] = ["*"]

    @classmethod
    def from_env(cls) -> "ClmSettings":
        return cls(
            clm_base_url=os.getenv("CLM_BASE_URL", DEFAULT_CLM_BASE_URL).rstrip("/"),
            account_id=(os.getenv("CLM_ACCOUNT_ID") or "").strip() or None,
            oauth_token_url=os.getenv("CLM_OAUTH_TOKEN_URL", DEFAULT_OAUTH_TOKEN_URL),
            relay_base_url=os.getenv("RELAY_BASE_URL", "http://localhost:8001").rstrip("/"),
            legacy_workflow_name=os.getenv("LEGACY_WORKFLOW_NAME", DEFAULT_LEGACY_WORKFLOW_NAME),
            request_timeout=float(os.getenv("CLM_REQUEST_TIMEOUT", "30")),
            cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        )

    def account_url(self, account_id: str) -> str:
        """Base URL for one CLM account, e.g. ``.../v2/<account_id>``."""
        return f"{self.clm_base_url.rstrip('/')}/{account_id}"


settings = ClmSettings.from_env()


def get_settings() -> ClmSettings:
    """FastAPI dependency returning the process settings."""
    return settings
