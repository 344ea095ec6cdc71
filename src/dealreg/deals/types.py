"""Domain enumerations for deal registration."""

from enum import StrEnum


class DealStatus(StrEnum):
    """Review states written by the admin handlers."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DealStage(StrEnum):
    """Sales stage reported by the partner."""

    LEAD = "lead"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed-won"


class ContractType(StrEnum):
    """Kind of contract the deal would produce."""

    NEW = "new"
    EXPANSION = "expansion"
    RENEWAL = "renewal"


class PrimaryProduct(StrEnum):
    """Products a partner can register a deal for."""

    MCP_SERVER = "mcp-server"
    SAFE_RAG = "safe-rag"
    PROXIMA_AI = "proxima-ai"
    PEBBLO_MODULES = "pebblo-modules"
    SAFE_INTER = "Safe Inter"
    PROFESSIONAL_SERVICES = "professional-services"


class AdminStatus(StrEnum):
    """Status values the handlers write to the admin allow-list."""

    ACTIVE = "active"
    REMOVED = "removed"


# Header order used when a tab is created by hand.  Projection always follows
# the header actually present in the tab.
DEAL_COLUMNS: list[str] = [
    "id",
    "status",
    "created_at",
    "company_name",
    "domain",
    "customer_legal_name",
    "partner_company",
    "submitter_name",
    "submitter_email",
    "territory",
    "customer_industry",
    "customer_location",
    "deal_stage",
    "expected_close_date",
    "deal_value",
    "contract_type",
    "primary_product",
    "additional_notes",
    "approved_by",
    "approved_at",
    "rejection_reason",
]

ADMIN_COLUMNS: list[str] = ["email", "added_by", "added_at", "status"]
