"""
Dashboard Approval Service

Approval workflow for dashboard-editable campaign content providing:
- Draft management for campaign info, summary and socials
- Submit / approve / reject workflow with an approval audit trail
- Publication of approved content to the public campaign tables
- Campaign-level batch submission and review

Port: 8260
"""

__version__ = "1.0.0"
__service__ = "dashboard_approval_service"
