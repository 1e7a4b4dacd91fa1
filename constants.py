"""Constants and configuration values."""

# --- DETECTION ---

# URL patterns that indicate legal content
URL_PATTERNS = [
    r"privacy[-_]?policy",
    r"terms[-_]?of[-_]?(service|use)",
    r"terms[-_]?and[-_]?conditions",
    r"user[-_]?agreement",
    r"legal",
    r"\btos\b",
    r"eula",
    r"end[-_]?user[-_]?license",
    r"cookie[-_]?policy",
    r"data[-_]?policy",
    r"acceptable[-_]?use",
    r"terms\.html?",
    r"privacy\.html?",
    r"legal\.html?",
]

# Page title patterns
TITLE_PATTERNS = [
    r"privacy\s+policy",
    r"terms\s+(of\s+service|of\s+use|and\s+conditions)",
    r"user\s+agreement",
    r"legal\s+(notice|information|terms)",
    r"cookie\s+policy",
    r"data\s+policy",
    r"eula",
    r"license\s+agreement",
]

# Legal terminology that commonly appears in legal documents
LEGAL_KEYWORDS = [
    "hereby",
    "herein",
    "aforementioned",
    "wherefore",
    "notwithstanding",
    "indemnify",
    "indemnification",
    "liability",
    "warranties",
    "disclaim",
    "arbitration",
    "jurisdiction",
    "governing law",
    "force majeure",
    "intellectual property",
    "confidentiality",
    "termination",
    "personal data",
    "data collection",
    "third parties",
    "cookies",
    "user content",
    "acceptable use",
    "prohibited conduct",
]

# Common section headers in legal documents
LEGAL_HEADERS = [
    r"acceptance of terms",
    r"scope of (service|agreement)",
    r"user obligations",
    r"prohibited (activities|uses|conduct)",
    r"intellectual property rights",
    r"disclaimer of warranties",
    r"limitation of liability",
    r"indemnification",
    r"termination",
    r"governing law",
    r"dispute resolution",
    r"arbitration",
    r"data collection",
    r"information we collect",
    r"how we use",
    r"sharing (of|your) information",
    r"your rights",
    r"data retention",
    r"security measures",
    r"cookies? and tracking",
    r"changes to (this|these) (terms|policy)",
]

FACTOR_WEIGHTS = {
    "url": 0.30,
    "title": 0.25,
    "content": 0.30,
    "structure": 0.15,
}

DETECTION_THRESHOLD = 0.75

# (minimum keyword matches, content score), checked in order
CONTENT_SCORE_STEPS = [
    (15, 1.0),
    (10, 0.8),
    (7, 0.6),
    (5, 0.4),
    (3, 0.2),
]

NOT_LEGAL_REASON = "Page does not appear to contain legal content"
GENERIC_LEGAL_REASON = "Multiple indicators suggest legal content"

# --- ANALYSIS ---

CAPABILITY_LABELS = {
    "prompt": "Prompt API",
    "summarizer": "Summarizer API",
    "rewriter": "Rewriter API",
    "writer": "Writer API",
}

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "ja": "Japanese",
}

ANALYSIS_DEPTHS = ("quick", "standard", "deep")

WORDS_PER_MINUTE = 200
TRUNCATION_MARKER = "..."

EMPTY_CAPABILITY_OUTPUT = {"risks": [], "terms": [], "keyPoints": []}

SYSTEM_PROMPT = """You are a legal document analyzer helping users understand complex legal text.
Always respond with valid JSON when requested. Be clear, accurate, and user-focused.
Identify risks, explain legal terms simply, and help users make informed decisions.
Write all natural-language output in {language}."""

SUMMARIZER_SYSTEM_PROMPT = """You summarize documents as a short list of key points.
Keep the summary to a medium length and do not add information that is not in the text."""

REWRITER_SYSTEM_PROMPT = """You rewrite text while keeping its meaning.
Keep a neutral tone and roughly the same length as the input."""

WRITER_SYSTEM_PROMPT = """You write short, clear texts for a general audience."""

# Prompt templates
RISK_PROMPT_TEMPLATE = """Analyze this legal document and identify concerning clauses and risks.
Focus on:
- Data collection and sharing practices
- Liability waivers and disclaimers
- Unusual or unfair terms
- Binding arbitration clauses
- Auto-renewal terms
- Rights you're giving up

Document:
{document_text}

Respond with JSON only in this exact format:
{{
  "risks": [
    {{
      "severity": "high|medium|low",
      "clause": "Section name or brief identifier",
      "issue": "What the concerning clause says",
      "explanation": "Why this is a concern in plain language"
    }}
  ]
}}"""

EXECUTIVE_SUMMARY_PROMPT_TEMPLATE = """Summarize this legal document in 2-3 sentences. Be clear and concise:

{document_text}

Summary:"""

KEY_POINTS_PROMPT_TEMPLATE = """Extract 5-7 key points from this legal document. Each point should be one clear sentence.

Document:
{document_text}

Respond with JSON only:
{{
  "keyPoints": ["point 1", "point 2", ...]
}}"""

FULL_SUMMARY_PROMPT_TEMPLATE = """Provide a comprehensive summary of this legal document. Break it down by sections and explain what each part means:

{document_text}

Summary:"""

GLOSSARY_PROMPT_TEMPLATE = """Identify legal and technical terms in this document and provide simple definitions.

Document:
{document_text}

Respond with JSON only:
{{
  "terms": [
    {{
      "term": "Legal term",
      "definition": "Simple explanation in everyday language"
    }}
  ]
}}"""

SIMPLIFY_PROMPT_TEMPLATE = """Rewrite this legal text in simple, everyday language that anyone can understand:

{document_text}

Simplified version:"""

SIMPLIFY_CONTEXT = "Simplify this legal text to everyday language"

# Remediation messages for unavailable capabilities
DOWNLOAD_REQUIRED_MESSAGE = """The on-device model for the {label} needs to be downloaded.

Please:
1. Request model preparation for "{capability}" (POST /prepare)
2. Wait for the download to complete (may take several minutes)
3. Try analyzing again"""

AUTHORIZATION_REQUIRED_MESSAGE = """Generative capabilities are not available.

Missing credentials:
The Prompt, Writer and Rewriter capabilities require an API key.

Please:
1. Set OPENAI_API_KEY in the environment or in a .env file
2. Restart the service

Note: the Summarizer capability alone is enough for a reduced analysis."""

UNSUPPORTED_MESSAGE = """No generative capability is ready for analysis.

At least the Prompt or the Summarizer capability must report "readily".
Check the capability status (GET /status) for details."""
