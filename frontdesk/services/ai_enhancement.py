"""
Rewrites free-text lab instructions with Google Gemini (google-genai SDK).
"""
import logging

from flask import current_app

from frontdesk.services.errors import EnhancementError, ValidationError

logger = logging.getLogger(__name__)

MIN_INSTRUCTION_CHARS = 10

PROMPT_TEMPLATE = """You are a professional dental laboratory communication specialist. Rewrite these dental design instructions to be professionally formatted with correct grammar and proper dental terminology:

"{instructions}"

REWRITING REQUIREMENTS:
- Correct all grammar, spelling, and punctuation errors
- Use professional dental terminology and proper dental notations
- Maintain ALL technical specifications exactly as provided (tooth numbers, materials, shades, measurements)
- Keep ALL abbreviations unchanged (PTI, SDA, USDA, RPD, etc.)
- Format as clear design instructions from clinical staff to lab technician
- Use proper dental notation standards (tooth #8, teeth #14-16, etc.)
- Structure content with bullet points for clarity when appropriate
- Maintain professional, instructional tone throughout
- Preserve all original technical requirements and specifications

IMPORTANT - PRESERVE PERSONAL GREETINGS:
- If the text starts with "Hi [Name]" or similar greeting, keep it EXACTLY as written
- If the text ends with "Thank you, [Name]" or similar personal closing, keep it EXACTLY as written
- Only rewrite the middle content (the actual dental instructions)
- Do NOT add any generic closings if there's already a personal one

Focus on:
- Professional grammar and sentence structure
- Clear, concise design instructions
- Proper dental terminology usage
- Maintaining all technical details exactly as specified
- Preserving personal greetings and closings

Respond with only the professionally rewritten instructions, no additional commentary."""

PLACEHOLDER_KEYS = {'', 'your_gemini_api_key_here'}


def build_prompt(instructions):
    return PROMPT_TEMPLATE.format(instructions=instructions)


def _client():
    api_key = current_app.config.get('GEMINI_API_KEY') or ''
    if api_key.strip() in PLACEHOLDER_KEYS:
        logger.error("Gemini API key not configured")
        raise EnhancementError('Gemini API key not configured. Please add GEMINI_API_KEY to your environment.')

    from google import genai
    return genai.Client(api_key=api_key)


def _readable_error(error):
    message = str(error).lower()
    if 'api key' in message or 'api_key' in message:
        return 'Invalid Gemini API key. Please check your configuration.'
    if 'quota' in message or '429' in message:
        return 'Gemini API quota exceeded. Please try again later.'
    if 'safety' in message or 'blocked' in message:
        return 'Content was blocked by safety filters. Please modify your instructions.'
    return 'Failed to enhance instructions. Please try again.'


def enhance_lab_instructions(instructions, client=None):
    """Return the professionally rewritten version of ``instructions``."""
    text = (instructions or '').strip()
    if not text:
        raise ValidationError('Please enter some instructions first before enhancing.')
    if len(text) < MIN_INSTRUCTION_CHARS:
        raise ValidationError('Please enter more detailed instructions before enhancing.')

    from google.genai import types

    client = client or _client()
    model = current_app.config.get('GEMINI_MODEL', 'gemini-2.0-flash')
    logger.info("Enhancing %d chars of lab instructions with %s", len(text), model)

    try:
        response = client.models.generate_content(
            model=model,
            contents=build_prompt(text),
            config=types.GenerateContentConfig(temperature=0.3),
        )
    except Exception as e:
        logger.error("Gemini enhancement failed: %s", e)
        raise EnhancementError(_readable_error(e)) from e

    enhanced = (getattr(response, 'text', None) or '').strip()
    if not enhanced:
        raise EnhancementError('No enhanced text received from Gemini AI')
    return enhanced
