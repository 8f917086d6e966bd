"""Static per-segment catalogs: knowledge topics, discovery prompts,
visual contexts and benchmark edge-case templates."""

from __future__ import annotations

from hyperevo.types import DEFAULT_SEGMENT

SEGMENT_KNOWLEDGE_TOPICS: dict[str, list[str]] = {
    "FINANCE": ["latest financial market trends", "cryptocurrency regulations", "AI in fintech innovations", "global economic forecasts", "sustainable investing strategies"],
    "TECHNOLOGY": ["emerging AI breakthroughs", "quantum computing advances", "cybersecurity threat landscape", "cloud computing trends", "edge computing developments"],
    "CREATIVE": ["AI art generation techniques", "current design trends", "creative automation tools", "digital content strategies", "multimedia production innovations"],
    "OPERATIONS": ["supply chain optimization AI", "process automation trends", "logistics technology advances", "operational efficiency metrics", "lean management innovations"],
    "LEGAL": ["AI legal compliance updates", "data privacy regulations", "intellectual property AI", "contract automation advances", "legal tech innovations"],
    "MEDICAL": ["AI diagnostics breakthroughs", "telemedicine advances", "medical imaging AI", "healthcare automation", "clinical trial AI innovations"],
    "RESEARCH": ["scientific discovery AI", "research methodology advances", "academic AI tools", "data analysis innovations", "knowledge synthesis techniques"],
    "SECURITY": ["threat detection AI advances", "zero trust architecture", "AI security vulnerabilities", "penetration testing automation", "security compliance AI"],
    "COMMUNICATIONS": ["natural language processing advances", "multilingual AI models", "communication automation", "sentiment analysis innovations", "conversational AI trends"],
    "STRATEGY": ["strategic planning AI", "competitive intelligence automation", "market analysis AI", "business forecasting innovations", "decision support systems"],
    DEFAULT_SEGMENT: ["artificial general intelligence progress", "machine learning breakthroughs", "neural network innovations", "AI ethics developments", "automation industry trends"],
}

SEGMENT_DISCOVERY_PROMPTS: dict[str, str] = {
    "FINANCE": "What are the most common real-world automation tasks in finance and accounting? Include tasks like invoice processing, reconciliation, financial reporting, tax calculations, expense management, and budgeting workflows.",
    "TECHNOLOGY": "What are the most common real-world automation tasks in software development and IT? Include tasks like code review, deployment automation, monitoring alerts, incident response, documentation generation, and API integration.",
    "CREATIVE": "What are the most common real-world automation tasks in creative and design workflows? Include tasks like asset management, design approvals, brand consistency checks, content scheduling, and creative brief processing.",
    "OPERATIONS": "What are the most common real-world automation tasks in business operations? Include tasks like inventory management, supply chain coordination, vendor management, quality assurance, and process optimization.",
    "LEGAL": "What are the most common real-world automation tasks in legal operations? Include tasks like contract review, compliance checking, document drafting, case management, and regulatory monitoring.",
    "MEDICAL": "What are the most common real-world automation tasks in healthcare? Include tasks like patient scheduling, medical records processing, insurance verification, prescription management, and clinical documentation.",
    "RESEARCH": "What are the most common real-world automation tasks in research and academia? Include tasks like literature review, data analysis, citation management, grant tracking, and experiment documentation.",
    "SECURITY": "What are the most common real-world automation tasks in cybersecurity? Include tasks like threat monitoring, vulnerability scanning, incident response, access management, and compliance auditing.",
    "COMMUNICATIONS": "What are the most common real-world automation tasks in communications and marketing? Include tasks like email campaigns, social media scheduling, analytics reporting, content personalization, and audience segmentation.",
    "STRATEGY": "What are the most common real-world automation tasks in business strategy and planning? Include tasks like market analysis, competitor tracking, KPI monitoring, scenario planning, and strategic report generation.",
    "DATA": "What are the most common real-world automation tasks in data management? Include tasks like data cleaning, ETL pipelines, quality validation, schema migrations, and data synchronization.",
    DEFAULT_SEGMENT: "What are the most common real-world business automation tasks across all industries? Include universal tasks like document processing, email management, scheduling, reporting, and workflow approvals.",
}

SEGMENT_VISUAL_CONTEXTS: dict[str, dict[str, list[str]]] = {
    "FINANCE": {
        "image_prompts": ["stock market chart patterns", "financial dashboard layouts", "trading signal indicators", "market heatmap analysis"],
        "video_scenarios": ["market opening bell activity", "trading floor dynamics", "financial news broadcast analysis", "economic indicator presentations"],
    },
    "TECHNOLOGY": {
        "image_prompts": ["system architecture diagrams", "code structure visualization", "network topology maps", "UI/UX design patterns"],
        "video_scenarios": ["software deployment processes", "DevOps pipeline workflows", "cloud infrastructure management", "code review sessions"],
    },
    "CREATIVE": {
        "image_prompts": ["graphic design compositions", "brand identity elements", "visual hierarchy examples", "color theory applications"],
        "video_scenarios": ["creative workflow processes", "design thinking workshops", "brand story presentations", "motion graphics techniques"],
    },
    "OPERATIONS": {
        "image_prompts": ["supply chain flow diagrams", "warehouse layout optimization", "logistics route maps", "process flow charts"],
        "video_scenarios": ["manufacturing line operations", "warehouse robotics in action", "delivery logistics tracking", "quality control inspections"],
    },
    "SECURITY": {
        "image_prompts": ["threat detection dashboards", "security incident timelines", "network intrusion patterns", "vulnerability assessment maps"],
        "video_scenarios": ["security operations center activity", "incident response procedures", "penetration testing demos", "security training simulations"],
    },
    "MEDICAL": {
        "image_prompts": ["medical imaging analysis", "diagnostic scan patterns", "patient data visualizations", "healthcare workflow diagrams"],
        "video_scenarios": ["surgical procedure analysis", "medical equipment operation", "patient care protocols", "diagnostic interpretation"],
    },
    "RESEARCH": {
        "image_prompts": ["scientific data visualizations", "experimental setup diagrams", "research methodology charts", "publication structure layouts"],
        "video_scenarios": ["laboratory experiment processes", "research presentation techniques", "data collection procedures", "peer review discussions"],
    },
    "LEGAL": {
        "image_prompts": ["contract structure diagrams", "legal process flowcharts", "compliance framework visuals", "case timeline graphics"],
        "video_scenarios": ["courtroom proceedings analysis", "legal negotiation dynamics", "contract signing protocols", "compliance audit processes"],
    },
    "COMMUNICATIONS": {
        "image_prompts": ["communication flow diagrams", "social media analytics dashboards", "engagement metric charts", "audience segmentation visuals"],
        "video_scenarios": ["press conference dynamics", "team collaboration sessions", "customer service interactions", "public speaking techniques"],
    },
    "STRATEGY": {
        "image_prompts": ["strategic planning frameworks", "competitive landscape maps", "business model canvas visuals", "market positioning charts"],
        "video_scenarios": ["board meeting presentations", "strategic planning sessions", "market analysis discussions", "leadership team dynamics"],
    },
    DEFAULT_SEGMENT: {
        "image_prompts": ["general data visualizations", "workflow process diagrams", "organizational charts", "information architecture maps"],
        "video_scenarios": ["team meeting dynamics", "project planning sessions", "training and development", "operational briefings"],
    },
}

EDGE_CASE_TEMPLATES: dict[str, list[str]] = {
    "financial_analysis": ["Negative balance scenarios", "Currency conversion edge cases", "Missing historical data", "Large transaction volumes"],
    "data_processing": ["Empty dataset input", "Malformed data records", "Extremely large files", "Duplicate record handling"],
    "communication": ["Multilingual content", "Urgent escalation scenarios", "Missing recipient information", "Attachment size limits"],
    "operations": ["System downtime handling", "Concurrent request conflicts", "Resource constraint scenarios", "Rollback requirements"],
    "research": ["Contradictory source data", "Outdated information", "Ambiguous query terms", "Citation verification"],
    "security_audit": ["False positive handling", "Zero-day vulnerability detection", "Privilege escalation scenarios", "Audit log tampering"],
    "default": ["Invalid input handling", "Timeout scenarios", "Partial completion handling", "Error recovery"],
}


def knowledge_topics(segment: str) -> list[str]:
    return SEGMENT_KNOWLEDGE_TOPICS.get(segment) or SEGMENT_KNOWLEDGE_TOPICS[DEFAULT_SEGMENT]


def discovery_prompt(segment: str) -> str:
    return SEGMENT_DISCOVERY_PROMPTS.get(segment) or SEGMENT_DISCOVERY_PROMPTS[DEFAULT_SEGMENT]


def visual_context(segment: str) -> dict[str, list[str]]:
    return SEGMENT_VISUAL_CONTEXTS.get(segment) or SEGMENT_VISUAL_CONTEXTS[DEFAULT_SEGMENT]


def edge_case_templates(task_type: str) -> list[str]:
    return EDGE_CASE_TEMPLATES.get(task_type) or EDGE_CASE_TEMPLATES["default"]
