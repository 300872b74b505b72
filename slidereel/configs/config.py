"""
Configuration module for SlideReel (configs).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Config:
    def __init__(self) -> None:
        self._output_dir: Path | None = None

        # Logging / runtime
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_file = os.getenv("LOG_FILE")
        self.log_dir = os.getenv("LOG_DIR", "logs")

        # Slide rendering
        self.renderer_priority = self._parse_list(
            os.getenv("RENDERER_PRIORITY", "MSGRAPH,LIBREOFFICE,PPTX")
        )
        self.default_renderer = os.getenv("DEFAULT_RENDERER", "PPTX").upper() or None
        self.render_width = int(os.getenv("RENDER_WIDTH", "1920"))
        self.render_height = int(os.getenv("RENDER_HEIGHT", "1080"))
        self.render_dpi = int(os.getenv("RENDER_DPI", "150"))
        self.soffice_timeout = float(os.getenv("SOFFICE_TIMEOUT", "120"))
        self.pdftoppm_timeout = float(os.getenv("PDFTOPPM_TIMEOUT", "30"))

        # MS Graph (SharePoint/OneDrive conversion)
        self.msgraph_enabled = (
            os.getenv("MSGRAPH_ENABLED", "false").lower() == "true"
        )
        self.msgraph_tenant_id = os.getenv("MSGRAPH_TENANT_ID")
        self.msgraph_client_id = os.getenv("MSGRAPH_CLIENT_ID")
        self.msgraph_client_secret = os.getenv("MSGRAPH_CLIENT_SECRET")
        self.msgraph_drive_id = os.getenv("MSGRAPH_DRIVE_ID")
        self.msgraph_folder = os.getenv("MSGRAPH_FOLDER", "slidereel-temp")

        # Video providers
        self.http_timeout = float(os.getenv("HTTP_TIMEOUT", "60"))
        self.shotstack_api_key = os.getenv("SHOTSTACK_API_KEY")
        self.shotstack_env = os.getenv("SHOTSTACK_ENV", "stage")
        self.heygen_api_key = os.getenv("HEYGEN_API_KEY")
        self.heygen_avatar_id = os.getenv("HEYGEN_AVATAR_ID", "Judy")
        self.heygen_voice_id = os.getenv(
            "HEYGEN_VOICE_ID", "1bd001e7e50f421d891986aad5158bc8"
        )
        self.google_gemini_api_key = os.getenv("GOOGLE_GEMINI_API_KEY")
        self.google_gemini_endpoint = (
            os.getenv("GOOGLE_GEMINI_ENDPOINT")
            or "https://generativelanguage.googleapis.com/v1beta"
        )
        self.veo_model = os.getenv("VEO_MODEL", "veo-3.0-fast-generate-001")
        self.default_video_provider = os.getenv("DEFAULT_VIDEO_PROVIDER", "composer")

        # Generation job tracking (seconds)
        self.job_poll_interval = float(os.getenv("JOB_POLL_INTERVAL", "10"))
        self.job_initial_delay = float(os.getenv("JOB_INITIAL_DELAY", "5"))
        self.job_poll_timeout = float(os.getenv("JOB_POLL_TIMEOUT", "30"))
        self.avatar_job_timeout = float(os.getenv("AVATAR_JOB_TIMEOUT", "900"))
        self.intro_job_timeout = float(os.getenv("INTRO_JOB_TIMEOUT", "600"))
        self.render_job_timeout = float(os.getenv("RENDER_JOB_TIMEOUT", "3600"))

        # Job store
        self.job_store = os.getenv("JOB_STORE", "memory").lower()
        self.redis_host = os.getenv("REDIS_HOST", "localhost")
        self.redis_port = int(os.getenv("REDIS_PORT", 6379))
        self.redis_db = int(os.getenv("REDIS_DB", 0))
        self.redis_password = os.getenv("REDIS_PASSWORD") or None

        # Preflight
        self.preflight_cache_ttl = float(os.getenv("PREFLIGHT_CACHE_TTL", "300"))

    def _parse_list(self, raw: str) -> list[str]:
        """Parse a comma-separated list, dropping blanks."""
        if not raw:
            return []
        return [item.strip().upper() for item in raw.split(",") if item.strip()]

    @property
    def output_dir(self) -> Path:
        if self._output_dir is None:
            output_dir_env = os.getenv("OUTPUT_DIR")
            if output_dir_env:
                self._output_dir = Path(output_dir_env).resolve()
            else:
                self._output_dir = Path.cwd() / "output"
        return self._output_dir

    def ensure_directories_exist(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def msgraph_configured(self) -> bool:
        return bool(
            self.msgraph_enabled
            and self.msgraph_tenant_id
            and self.msgraph_client_id
            and self.msgraph_client_secret
            and self.msgraph_drive_id
        )

    def job_timeout_for(self, kind: str) -> float:
        """Return the wall-clock timeout for a generation job kind."""
        timeouts = {
            "avatar": self.avatar_job_timeout,
            "intro": self.intro_job_timeout,
            "render": self.render_job_timeout,
        }
        if kind not in timeouts:
            raise ValueError(f"Unknown job kind: {kind}")
        return timeouts[kind]


config = Config()
