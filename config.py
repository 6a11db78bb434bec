import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from dotenv import load_dotenv

# Carrega as variáveis de ambiente do arquivo .env
load_dotenv()

DEFAULT_WEBHOOK_USERNAME = "webhook_api"

# Origens confiáveis por padrão: app Lovable, localhost e qualquer origem HTTPS
DEFAULT_ORIGIN_REGEX = r"^(https://.+|https?://[^/]*\.lovable\.app|http://localhost(:\d+)?|http://127\.0\.0\.1(:\d+)?)$"


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_anon_key: Optional[str]
    supabase_jwt_secret: Optional[str]
    confirmation_webhook_url: str
    risk_webhook_url: str
    whatsapp_webhook_url: str
    webhook_username: str
    webhook_password: str
    relay_functions_url: str = ""

    @property
    def webhook_credentials(self) -> Tuple[str, str]:
        return (self.webhook_username, self.webhook_password)

    @property
    def functions_url(self) -> str:
        """URL base das funções de relay (padrão: functions/v1 do projeto Supabase)."""
        if self.relay_functions_url:
            return self.relay_functions_url.rstrip("/")
        return f"{(self.supabase_url or '').rstrip('/')}/functions/v1"


def get_settings() -> Settings:
    """Lê a configuração a cada requisição; nada é mantido entre invocações."""
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
        supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET") or None,
        confirmation_webhook_url=os.getenv("N8N_CONFIRMATION_WEBHOOK_URL", "").strip(),
        risk_webhook_url=os.getenv("N8N_RISK_WEBHOOK_URL", "").strip(),
        whatsapp_webhook_url=os.getenv("N8N_WHATSAPP_WEBHOOK_URL", "").strip(),
        webhook_username=(os.getenv("N8N_WEBHOOK_USERNAME") or DEFAULT_WEBHOOK_USERNAME).strip(),
        webhook_password=(os.getenv("N8N_WEBHOOK_PASSWORD") or "").strip(),
        relay_functions_url=os.getenv("RELAY_FUNCTIONS_URL", "").strip(),
    )


def get_allowed_origins() -> List[str]:
    allowed_origins_env = os.getenv("ALLOWED_ORIGINS")
    if allowed_origins_env:
        return [o.strip() for o in allowed_origins_env.split(",") if o.strip()]
    return [os.getenv("FRONTEND_URL", "http://localhost:8080")]
