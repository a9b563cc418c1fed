"""
Qualification oracle backed by Google Gemini.

For each candidate the model is asked two things in one call: whether the
person is worth contacting, and if so, the personalized connection note
built from the run's message template. The answer comes back as JSON.
"""

import json
import logging
from typing import Optional

import google.generativeai as genai
from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound

from leadflow import config
from leadflow.automation.errors import ConfigurationError
from leadflow.models import Candidate

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE_NAME = "qualify_and_compose.txt"

# Template variables like {{firstName}} must reach the model verbatim,
# hence the raw block around the instructions that mention them.
_FALLBACK_PROMPT = """
You are an expert LinkedIn outreach specialist who creates highly personalized connection messages that drive engagement and build professional relationships for qualified candidates.

## Your Task
First, evaluate if the candidate is qualified for outreach, then create a personalized LinkedIn connection message if they are qualified.

## Message Template
<OutreachMessageTemplate>
{{ message_template }}
</OutreachMessageTemplate>

## Person's Information
<PersonInformation>
{{ person_json }}
</PersonInformation>

## Candidate Qualification Criteria
Evaluate if this person is a qualified candidate for outreach based on these criteria:

**QUALIFIED CANDIDATES:**
- Business owners, founders, co-founders
- C-level executives (CEO, CTO, CMO, CFO, COO, etc.)
- VPs, Directors, and senior management
- Decision-makers with purchasing authority
- People in leadership positions who can make business decisions
- Entrepreneurs and business leaders

**NOT QUALIFIED:**
- Junior employees, interns, students
- Non-decision makers (administrative staff, coordinators, assistants)
- People without business decision-making authority
- Entry-level positions without influence
- Non-business roles without decision-making power
{% if target_industries %}
**TARGET INDUSTRIES:** Only qualify candidates who work in these industries: {{ target_industries }}
{% endif %}{% if exclude_industries %}
**EXCLUDE INDUSTRIES:** Do NOT qualify candidates who work in these industries: {{ exclude_industries }}
{% endif %}
{% raw %}## Instructions
1. **Qualification Check**: First determine if the candidate is qualified based on their title, role, and position level
2. **Personalization Strategy**: If qualified, use the person's information strategically:
   - Use their first name naturally in the message
   - Reference their current role, company, or industry when relevant
   - Mention specific details from their headline or summary if it adds value
   - Consider their location if it's relevant to your connection

3. **Template Variables**: Replace ALL variables marked with {{variableName}} in the template using the person's information

4. **Message Quality Guidelines**:
   - Keep the tone professional but warm and authentic
   - Make it conversational and human-like
   - Avoid being overly salesy or pushy
   - Keep it concise (LinkedIn has character limits)
   - Ensure the message feels genuine and personalized

5. **Edge Cases**:
   - If person information is missing, use generic alternatives or skip that personalization
   - If multiple current positions exist, use the first one
   - If headline is missing, use their title instead
   - Always ensure the message makes sense even with missing data
{% endraw %}
## Output Requirements
- Return a JSON object with two fields:
  - "qualified": boolean indicating if the candidate is qualified for outreach
  - "outreachMessage": string containing the personalized message (empty string if not qualified)
- If not qualified, set qualified to false and outreachMessage to empty string
- If qualified, set qualified to true and provide the personalized message
- Ensure all template variables are replaced in the message
- The message should be ready to send as-is
- Make sure the overall grammar and structure of the message is correct
- Make sure that the overall length of the message is less than 300 characters
- Do not add any unnecessary characters to the message
"""

_env = None
_fallback_template = None


class OracleError(Exception):
    """The oracle could not be reached or its answer could not be parsed."""


def _get_env() -> Environment:
    """Get or create Jinja2 environment."""
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(config.PROMPT_TEMPLATE_DIR),
            autoescape=False,
        )
    return _env


def _get_fallback_template() -> Template:
    """Compile the built-in prompt once."""
    global _fallback_template
    if _fallback_template is None:
        _fallback_template = _get_env().from_string(_FALLBACK_PROMPT)
    return _fallback_template


def build_prompt(
    message_template: str,
    candidate: Candidate,
    target_industries: Optional[str] = None,
    exclude_industries: Optional[str] = None,
) -> str:
    """Render the qualify-and-compose prompt for one candidate."""
    context = {
        'message_template': message_template,
        'person_json': json.dumps(candidate.prompt_data(), indent=2, ensure_ascii=False),
        'target_industries': target_industries,
        'exclude_industries': exclude_industries,
    }

    try:
        template = _get_env().get_template(PROMPT_TEMPLATE_NAME)
    except TemplateNotFound:
        template = _get_fallback_template()

    return template.render(**context)


class GeminiOracle:
    """Qualifies candidates and composes their messages with Gemini."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None, model=None):
        """
        Initialize the oracle.

        Args:
            api_key: Google AI API key (defaults to GEMINI_API_KEY)
            model_name: Gemini model to use (defaults to GEMINI_MODEL)
            model: Pre-built model object exposing generate_content()
        """
        self.model_name = model_name or config.GEMINI_MODEL
        if model is not None:
            self.model = model
            return

        api_key = api_key or config.GEMINI_API_KEY
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable is required")

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=self.model_name,
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
            ),
        )
        logger.info("Configured Gemini model: %s", self.model_name)

    def generate(
        self,
        message_template: str,
        candidate: Candidate,
        target_industries: Optional[str] = None,
        exclude_industries: Optional[str] = None,
    ) -> dict:
        """
        Ask the model about one candidate.

        Returns:
            The decoded JSON payload, normally {"qualified": bool,
            "outreachMessage": str}. Fields may be missing.

        Raises:
            OracleError: on transport failure or an undecodable answer
        """
        prompt = build_prompt(message_template, candidate, target_industries, exclude_industries)

        try:
            response = self.model.generate_content(prompt)
            text = response.text if response else ""
        except Exception as e:
            raise OracleError(f"Gemini request failed: {e}") from e

        if not text or not text.strip():
            return {}

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise OracleError(f"Could not parse Gemini response as JSON: {e}") from e

        if not isinstance(payload, dict):
            raise OracleError(f"Unexpected Gemini response type: {type(payload).__name__}")

        return payload


def create_gemini_oracle(api_key: Optional[str] = None, model_name: Optional[str] = None) -> GeminiOracle:
    """Factory function to create a GeminiOracle instance."""
    return GeminiOracle(api_key=api_key, model_name=model_name)
