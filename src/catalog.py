"""
catalog.py

Static reference data for the AI Compliance Gate.

  - REFERENCE_USERS      – the reviewers who sign off on stages
  - WORKFLOW_STAGES      – the seven review stages, in workflow order
  - INDUSTRY_TEMPLATES   – industry key → roadmap template (gates, resources,
                           risks, assumptions)
  - common risk / assumption sets, complexity keywords and daily rate bands
    used by the roadmap engine

Everything here is built once at import and exposed read-only (tuples,
frozen dataclasses, MappingProxyType).  A new industry is a new
IndustryTemplate entry in _TEMPLATES; no engine code changes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from model import (
    ComplexityTier,
    ProjectStage,
    ResourceAvailability,
    RiskLevel,
    User,
    UserRole,
    WorkflowStage,
)


# ---------------------------------------------------------------------------
# Reference users
# ---------------------------------------------------------------------------

SARAH_JOHNSON_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
MIKE_CHEN_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
EMILY_RODRIGUEZ_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
DAVID_KIM_ID = uuid.UUID("00000000-0000-0000-0000-000000000004")
LISA_WANG_ID = uuid.UUID("00000000-0000-0000-0000-000000000005")

REFERENCE_USERS: Tuple[User, ...] = (
    User(
        id=SARAH_JOHNSON_ID,
        name="Sarah Johnson",
        email="sarah.johnson@company.com",
        role=UserRole.LEGAL,
        department="Legal",
    ),
    User(
        id=MIKE_CHEN_ID,
        name="Mike Chen",
        email="mike.chen@company.com",
        role=UserRole.IT,
        department="IT",
    ),
    User(
        id=EMILY_RODRIGUEZ_ID,
        name="Emily Rodriguez",
        email="emily.rodriguez@company.com",
        role=UserRole.ADMIN,
        department="Compliance",
    ),
    User(
        id=DAVID_KIM_ID,
        name="David Kim",
        email="david.kim@company.com",
        role=UserRole.APPROVER,
        department="Risk Management",
    ),
    User(
        id=LISA_WANG_ID,
        name="Lisa Wang",
        email="lisa.wang@company.com",
        role=UserRole.LEGAL,
        department="Legal",
    ),
)


# ---------------------------------------------------------------------------
# Workflow stages
# ---------------------------------------------------------------------------

WORKFLOW_STAGES: Tuple[WorkflowStage, ...] = (
    WorkflowStage(
        id=ProjectStage.INITIAL_ASSESSMENT,
        name="Initial Assessment",
        description="Initial project evaluation and risk assessment",
        required_approvers=(EMILY_RODRIGUEZ_ID,),
        required_evidence=("project_scope", "risk_assessment"),
        estimated_duration=3,
        can_advance=True,
        can_revert=False,
    ),
    WorkflowStage(
        id=ProjectStage.LEGAL_REVIEW,
        name="Legal Review",
        description="Legal compliance and regulatory review",
        required_approvers=(SARAH_JOHNSON_ID, LISA_WANG_ID),
        required_evidence=("legal_opinion", "regulatory_compliance"),
        estimated_duration=5,
        can_advance=True,
        can_revert=True,
    ),
    WorkflowStage(
        id=ProjectStage.TECHNICAL_REVIEW,
        name="Technical Review",
        description="Technical feasibility and security assessment",
        required_approvers=(MIKE_CHEN_ID,),
        required_evidence=("technical_assessment", "security_review"),
        estimated_duration=4,
        can_advance=True,
        can_revert=True,
    ),
    WorkflowStage(
        id=ProjectStage.COMPLIANCE_CHECK,
        name="Compliance Check",
        description="Final compliance verification",
        required_approvers=(EMILY_RODRIGUEZ_ID, DAVID_KIM_ID),
        required_evidence=("compliance_report", "final_assessment"),
        estimated_duration=3,
        can_advance=True,
        can_revert=True,
    ),
    WorkflowStage(
        id=ProjectStage.FINAL_APPROVAL,
        name="Final Approval",
        description="Executive approval and sign-off",
        required_approvers=(DAVID_KIM_ID,),
        required_evidence=("executive_approval",),
        estimated_duration=2,
        can_advance=True,
        can_revert=True,
    ),
    WorkflowStage(
        id=ProjectStage.IMPLEMENTATION,
        name="Implementation",
        description="Project implementation and deployment",
        required_approvers=(MIKE_CHEN_ID,),
        required_evidence=("implementation_plan", "deployment_report"),
        estimated_duration=7,
        can_advance=True,
        can_revert=False,
    ),
    WorkflowStage(
        id=ProjectStage.MONITORING,
        name="Monitoring",
        description="Ongoing monitoring and compliance tracking",
        required_approvers=(EMILY_RODRIGUEZ_ID,),
        required_evidence=("monitoring_report", "compliance_metrics"),
        estimated_duration=30,
        can_advance=False,
        can_revert=False,
    ),
)

STAGE_INDEX: Mapping[ProjectStage, int] = MappingProxyType(
    {stage.id: i for i, stage in enumerate(WORKFLOW_STAGES)}
)


# ---------------------------------------------------------------------------
# Roadmap template blueprints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GateTemplate:
    name: str
    description: str
    estimated_duration: int             # days
    deliverables: Tuple[str, ...]
    success_criteria: Tuple[str, ...]
    risk_level: RiskLevel


@dataclass(frozen=True)
class ResourceTemplate:
    name: str
    role: str
    department: str
    expertise: Tuple[str, ...]
    availability: ResourceAvailability
    email: str
    estimated_time_commitment: int      # hours per week


@dataclass(frozen=True)
class IndustryTemplate:
    """Complete roadmap blueprint for one industry."""
    key: str
    label: str
    gates: Tuple[GateTemplate, ...]
    resources: Tuple[ResourceTemplate, ...]
    risks: Tuple[str, ...]
    assumptions: Tuple[str, ...]


# ═══════════════════════════════════════════════════════════════════════
# PHARMACEUTICAL
# ═══════════════════════════════════════════════════════════════════════

_PHARMACEUTICAL = IndustryTemplate(
    key="pharmaceutical",
    label="Pharmaceutical",
    gates=(
        GateTemplate(
            name="Pre-Clinical Research",
            description="Initial research and laboratory testing",
            estimated_duration=180,
            deliverables=("Research proposal", "Laboratory protocols", "Initial findings"),
            success_criteria=(
                "Research objectives defined",
                "Laboratory setup complete",
                "Initial data collected",
            ),
            risk_level=RiskLevel.HIGH,
        ),
        GateTemplate(
            name="Regulatory Planning",
            description="FDA and regulatory compliance planning",
            estimated_duration=90,
            deliverables=("Regulatory strategy", "Compliance documentation", "FDA communication plan"),
            success_criteria=(
                "Regulatory pathway identified",
                "Documentation framework established",
                "FDA pre-submission meeting scheduled",
            ),
            risk_level=RiskLevel.CRITICAL,
        ),
        GateTemplate(
            name="Clinical Trial Design",
            description="Design and planning of clinical trials",
            estimated_duration=120,
            deliverables=("Clinical trial protocol", "Patient recruitment plan", "Data collection framework"),
            success_criteria=(
                "Protocol approved by IRB",
                "Recruitment strategy finalized",
                "Data management plan established",
            ),
            risk_level=RiskLevel.HIGH,
        ),
        GateTemplate(
            name="Manufacturing Setup",
            description="Drug manufacturing and quality control setup",
            estimated_duration=150,
            deliverables=("Manufacturing facility design", "Quality control protocols", "Supply chain setup"),
            success_criteria=(
                "Facility approved by FDA",
                "Quality systems in place",
                "Supply chain established",
            ),
            risk_level=RiskLevel.CRITICAL,
        ),
        GateTemplate(
            name="Clinical Trials",
            description="Phase I, II, and III clinical trials",
            estimated_duration=720,
            deliverables=("Clinical trial reports", "Safety data", "Efficacy data"),
            success_criteria=(
                "All trial phases completed",
                "Safety profile established",
                "Efficacy demonstrated",
            ),
            risk_level=RiskLevel.CRITICAL,
        ),
        GateTemplate(
            name="FDA Submission",
            description="New Drug Application (NDA) submission",
            estimated_duration=60,
            deliverables=("NDA application", "Supporting documentation", "FDA review materials"),
            success_criteria=(
                "NDA submitted",
                "All documentation complete",
                "FDA review initiated",
            ),
            risk_level=RiskLevel.CRITICAL,
        ),
        GateTemplate(
            name="FDA Review and Approval",
            description="FDA review process and final approval",
            estimated_duration=365,
            deliverables=("FDA approval letter", "Labeling approved", "Post-marketing plan"),
            success_criteria=(
                "FDA approval received",
                "Labeling finalized",
                "Post-marketing requirements defined",
            ),
            risk_level=RiskLevel.CRITICAL,
        ),
        GateTemplate(
            name="Commercial Launch",
            description="Market launch and commercialization",
            estimated_duration=90,
            deliverables=("Marketing strategy", "Sales team training", "Distribution network"),
            success_criteria=(
                "Product launched",
                "Sales targets met",
                "Distribution established",
            ),
            risk_level=RiskLevel.MEDIUM,
        ),
    ),
    resources=(
        ResourceTemplate(
            name="Dr. Sarah Johnson",
            role="Principal Investigator",
            department="Research & Development",
            expertise=("Clinical Research", "Regulatory Affairs", "Drug Development"),
            availability=ResourceAvailability.AVAILABLE,
            email="sarah.johnson@company.com",
            estimated_time_commitment=40,
        ),
        ResourceTemplate(
            name="Dr. Michael Chen",
            role="Regulatory Affairs Director",
            department="Regulatory Affairs",
            expertise=("FDA Regulations", "NDA Submissions", "Compliance"),
            availability=ResourceAvailability.AVAILABLE,
            email="michael.chen@company.com",
            estimated_time_commitment=35,
        ),
        ResourceTemplate(
            name="Emily Rodriguez",
            role="Clinical Operations Manager",
            department="Clinical Operations",
            expertise=("Clinical Trial Management", "Patient Recruitment", "Data Management"),
            availability=ResourceAvailability.PARTIALLY_AVAILABLE,
            email="emily.rodriguez@company.com",
            estimated_time_commitment=30,
        ),
        ResourceTemplate(
            name="David Kim",
            role="Manufacturing Director",
            department="Manufacturing",
            expertise=("GMP Manufacturing", "Quality Control", "Supply Chain"),
            availability=ResourceAvailability.AVAILABLE,
            email="david.kim@company.com",
            estimated_time_commitment=40,
        ),
        ResourceTemplate(
            name="Lisa Wang",
            role="Legal Counsel",
            department="Legal",
            expertise=("Intellectual Property", "Regulatory Law", "Contract Negotiation"),
            availability=ResourceAvailability.AVAILABLE,
            email="lisa.wang@company.com",
            estimated_time_commitment=25,
        ),
    ),
    risks=(
        "Regulatory approval delays",
        "Clinical trial recruitment challenges",
        "Manufacturing compliance issues",
        "Patent and intellectual property risks",
    ),
    assumptions=(
        "Regulatory environment remains stable",
        "Clinical trial sites will be available",
        "Patient recruitment targets will be met",
    ),
)


# ═══════════════════════════════════════════════════════════════════════
# TECHNOLOGY
# ═══════════════════════════════════════════════════════════════════════

_TECHNOLOGY = IndustryTemplate(
    key="technology",
    label="Technology",
    gates=(
        GateTemplate(
            name="Market Research",
            description="Market analysis and user research",
            estimated_duration=30,
            deliverables=("Market analysis report", "User personas", "Competitive analysis"),
            success_criteria=(
                "Target market identified",
                "User needs understood",
                "Competitive landscape mapped",
            ),
            risk_level=RiskLevel.LOW,
        ),
        GateTemplate(
            name="Product Design",
            description="Product design and prototyping",
            estimated_duration=60,
            deliverables=("Product specifications", "UI/UX designs", "Prototype"),
            success_criteria=(
                "Product specs finalized",
                "Designs approved",
                "Prototype tested",
            ),
            risk_level=RiskLevel.MEDIUM,
        ),
        GateTemplate(
            name="Development",
            description="Software development and testing",
            estimated_duration=120,
            deliverables=("MVP", "Test results", "Documentation"),
            success_criteria=(
                "MVP completed",
                "Testing passed",
                "Documentation complete",
            ),
            risk_level=RiskLevel.HIGH,
        ),
        GateTemplate(
            name="Security Review",
            description="Security assessment and compliance",
            estimated_duration=45,
            deliverables=("Security audit report", "Compliance documentation", "Penetration testing"),
            success_criteria=(
                "Security audit passed",
                "Compliance verified",
                "Vulnerabilities addressed",
            ),
            risk_level=RiskLevel.CRITICAL,
        ),
        GateTemplate(
            name="Beta Testing",
            description="Beta testing and user feedback",
            estimated_duration=60,
            deliverables=("Beta test results", "User feedback report", "Bug fixes"),
            success_criteria=(
                "Beta testing completed",
                "Feedback collected",
                "Critical bugs fixed",
            ),
            risk_level=RiskLevel.MEDIUM,
        ),
        GateTemplate(
            name="Launch Preparation",
            description="Final launch preparation",
            estimated_duration=30,
            deliverables=("Launch plan", "Marketing materials", "Support documentation"),
            success_criteria=(
                "Launch plan approved",
                "Marketing ready",
                "Support team trained",
            ),
            risk_level=RiskLevel.MEDIUM,
        ),
        GateTemplate(
            name="Product Launch",
            description="Product launch and monitoring",
            estimated_duration=90,
            deliverables=("Launched product", "Performance metrics", "User adoption data"),
            success_criteria=(
                "Product launched",
                "Performance targets met",
                "User adoption achieved",
            ),
            risk_level=RiskLevel.HIGH,
        ),
    ),
    resources=(
        ResourceTemplate(
            name="Mike Chen",
            role="Product Manager",
            department="Product",
            expertise=("Product Strategy", "User Research", "Agile Development"),
            availability=ResourceAvailability.AVAILABLE,
            email="mike.chen@company.com",
            estimated_time_commitment=40,
        ),
        ResourceTemplate(
            name="Sarah Johnson",
            role="Lead Developer",
            department="Engineering",
            expertise=("Full-Stack Development", "System Architecture", "DevOps"),
            availability=ResourceAvailability.AVAILABLE,
            email="sarah.johnson@company.com",
            estimated_time_commitment=40,
        ),
        ResourceTemplate(
            name="Emily Rodriguez",
            role="Security Engineer",
            department="Security",
            expertise=("Security Auditing", "Compliance", "Penetration Testing"),
            availability=ResourceAvailability.PARTIALLY_AVAILABLE,
            email="emily.rodriguez@company.com",
            estimated_time_commitment=30,
        ),
        ResourceTemplate(
            name="David Kim",
            role="UX Designer",
            department="Design",
            expertise=("User Experience", "Interface Design", "User Research"),
            availability=ResourceAvailability.AVAILABLE,
            email="david.kim@company.com",
            estimated_time_commitment=35,
        ),
        ResourceTemplate(
            name="Lisa Wang",
            role="QA Engineer",
            department="Quality Assurance",
            expertise=("Test Automation", "Manual Testing", "Quality Processes"),
            availability=ResourceAvailability.AVAILABLE,
            email="lisa.wang@company.com",
            estimated_time_commitment=40,
        ),
    ),
    risks=(
        "Security vulnerabilities and data breaches",
        "User adoption and market acceptance",
        "Technology stack obsolescence",
        "Competitive pressure and market changes",
    ),
    assumptions=(
        "User requirements will remain stable",
        "Technology stack will remain relevant",
        "Market conditions will be favorable",
    ),
)


# ---------------------------------------------------------------------------
# Template registry
# ---------------------------------------------------------------------------

DEFAULT_INDUSTRY = "technology"

_TEMPLATES: Dict[str, IndustryTemplate] = {
    t.key: t for t in (_TECHNOLOGY, _PHARMACEUTICAL)
}

INDUSTRY_TEMPLATES: Mapping[str, IndustryTemplate] = MappingProxyType(_TEMPLATES)


# ---------------------------------------------------------------------------
# Roadmap heuristics
# ---------------------------------------------------------------------------

COMMON_RISKS: Tuple[str, ...] = (
    "Resource availability and team capacity",
    "Timeline delays due to dependencies",
    "Budget overruns and scope creep",
    "Technical challenges and integration issues",
)

COMPLEXITY_RISKS: Mapping[ComplexityTier, Tuple[str, ...]] = MappingProxyType({
    ComplexityTier.ENTERPRISE: (
        "Stakeholder alignment and communication",
        "Cross-functional coordination challenges",
        "Risk of project failure due to scale",
    ),
    ComplexityTier.COMPLEX: (
        "Technical complexity and integration challenges",
        "Resource allocation and skill gaps",
    ),
})

COMMON_ASSUMPTIONS: Tuple[str, ...] = (
    "Adequate budget and resources will be available",
    "Stakeholder support and commitment will be maintained",
    "Technology and tools will function as expected",
)

# Matched as case-insensitive substrings of the description.
COMPLEXITY_KEYWORDS: Tuple[str, ...] = (
    "drug",
    "clinical",
    "fda",
    "regulatory",
    "ai",
    "ml",
    "machine learning",
    "artificial intelligence",
)

# Currency units per day: (min, max)
DAILY_RATES: Mapping[ComplexityTier, Tuple[int, int]] = MappingProxyType({
    ComplexityTier.SIMPLE: (500, 1000),
    ComplexityTier.MODERATE: (1000, 2000),
    ComplexityTier.COMPLEX: (2000, 5000),
    ComplexityTier.ENTERPRISE: (5000, 15000),
})

BUDGET_CURRENCY = "USD"
