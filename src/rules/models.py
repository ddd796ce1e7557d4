from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class IntakeRules(BaseModel):
    case_insensitive_emails: bool = True
    log_duplicate_attempts: bool = True
    store_timeout_seconds: float | None = Field(default=10.0, gt=0)
    notifier_timeout_seconds: float | None = Field(default=5.0, gt=0)


class StoreRules(BaseModel):
    subscriptions_table: str = "email_subscriptions"
    duplicates_table: str = "email_duplicates"
    duplicate_stats_view: str = "duplicate_statistics"


class DuplicatesRules(BaseModel):
    default_reason: str = "Already subscribed"
    unknown_user_agent: str = "unknown"
    retention_days: int = Field(default=90, ge=0)


class NotifierRules(BaseModel):
    enabled: bool = True
    function_name: str = "send-confirmation-email"


class Rules(BaseModel):
    project: ProjectRules
    intake: IntakeRules = Field(default_factory=IntakeRules)
    store: StoreRules = Field(default_factory=StoreRules)
    duplicates: DuplicatesRules = Field(default_factory=DuplicatesRules)
    notifier: NotifierRules = Field(default_factory=NotifierRules)
