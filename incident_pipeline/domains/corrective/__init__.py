"""Corrective (L3) domain: multi-source merge and L3 status views."""

from incident_pipeline.domains.corrective.merge import build_l3_records, merge_sources
from incident_pipeline.domains.corrective.summary import (
    get_l3_requests_by_status,
    get_l3_summary,
    get_l3_tickets_by_status,
)
