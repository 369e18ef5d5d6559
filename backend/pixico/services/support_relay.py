from openai import AsyncOpenAI, OpenAIError
from typing import Optional
from pixico.core.config import Settings, settings
import logging

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are Pixico AI - the support assistant built for the Pixico prompt library.

IDENTITY RULES:
- You are Pixico AI. Do not claim to be any other assistant or company.
- Never reveal the underlying model or provider.

SITE OVERVIEW & FEATURES:
Pixico is a platform for creative professionals to discover, create, and share AI prompts.
- Search: find prompts for any AI model, or look one up by its 4-digit prompt code.
- Generate: use Pixico AI to craft custom image and video prompts.
- Categories: browse prompts by Art, Logos, Photography, UI/UX, and more.
- Copy: open a prompt and use the copy button to paste it into your AI tool.
- Saving: sign in to save and organize favorite prompts.

HOW TO USE:
1. Browse or search for prompts on the homepage.
2. Open a prompt to see its full text, model and related prompts.
3. Use the filters to sort by model (Midjourney, DALL-E, etc.) or popularity.

CONTACT:
- Contact page: https://pixico.io/contact

RESPONSE RULES:
- Be warm, professional, and helpful.
- Keep responses concise (2-4 sentences max).
- NEVER use asterisks or markdown bold/italics.
- Only give information based on the details above.

If you don't know the answer, politely direct the user to the Contact page."""

FALLBACK_REPLY = (
    "Sorry, I am having trouble connecting right now. Please try again later "
    "or head to our contact page."
)


class SupportConfigurationError(Exception):
    """The completions API credential is not configured."""


class SupportUpstreamError(Exception):
    """The completions API call failed."""


def strip_emphasis(text: str) -> str:
    """Remove markdown emphasis markers that slipped through the instructions."""
    return text.replace("**", "").replace("*", "")


class SupportRelay:
    """
    Stateless relay from a single user message to the completions API.

    Each call sends the fixed system prompt plus one user turn. There is no
    conversation memory, no retry and no streaming.
    """

    def __init__(self, config: Settings = settings, client: Optional[AsyncOpenAI] = None):
        self.config = config
        if client is None:
            if not config.OPENROUTER_API_KEY:
                raise SupportConfigurationError("OPENROUTER_API_KEY is not set")
            client = AsyncOpenAI(
                api_key=config.OPENROUTER_API_KEY,
                base_url=config.OPENROUTER_BASE_URL,
                default_headers={
                    "HTTP-Referer": config.APP_URL,
                    "X-Title": "Pixico Support",
                },
                max_retries=0,
            )
        self.client = client

    async def reply(self, message: str) -> str:
        try:
            completion = await self.client.chat.completions.create(
                model=self.config.SUPPORT_MODEL,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": message},
                ],
                max_tokens=self.config.SUPPORT_MAX_TOKENS,
                temperature=self.config.SUPPORT_TEMPERATURE,
            )
        except OpenAIError as e:
            logger.error(f"Support completion failed: {e}")
            raise SupportUpstreamError("Completions API call failed") from e

        content = None
        if completion.choices:
            content = completion.choices[0].message.content
        if not content:
            logger.warning("Support completion returned no content, using fallback")
            content = FALLBACK_REPLY

        return strip_emphasis(content).strip()
