"""
Chat-completion client for medical report interpretation.

Sends the user's question, extracted PDF text and report images to an
OpenRouter-compatible multimodal model and returns its raw answer.

IMPORTANT: The model output is not a medical diagnosis. It is sanitized
and shown with a disclaimer by the caller.
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from app.config import Settings
from app.utils.logger import get_logger

logger = get_logger("llm_engine")


class LLMEngineError(Exception):
    """Base error for chat-completion failures."""

    status_code = 502

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)


class MissingCredentialsError(LLMEngineError):
    """Raised when no API key is configured."""

    status_code = 500

    def __init__(self):
        super().__init__("Missing OPENROUTER_API_KEY in environment")


class UpstreamAPIError(LLMEngineError):
    """The API answered with a non-success status."""

    def __init__(self, upstream_status: int, details: Any = None):
        self.upstream_status = upstream_status
        super().__init__(f"API error {upstream_status}", details)


class UpstreamConnectionError(LLMEngineError):
    """The API could not be reached or timed out."""

    def __init__(self, details: str):
        super().__init__("Server error", details)


@dataclass
class AnalysisResponse:
    """Raw model answer."""
    content: str


SECTION_INSTRUCTIONS = (
    "Output strictly in sections: Summary; Detailed Findings; Possible Diagnoses/Considerations; "
    "Risk Level (Low/Medium/High with rationale); Red Flags; Next Steps. Be concise, avoid "
    "speculative claims, and clearly state limitations if image/report quality is suboptimal.\n"
)

ECG_CHECKLIST = (
    "ECG-exclusive detailed checklist (use whenever an ECG/report image or text is provided):\n"
    "1) Verify basics: patient name/age/sex, date/time, paper speed (25 mm/s default) and gain (10 mm/mV), "
    "device/filters; flag poor quality, noise, or wrong lead placement.\n"
    "2) Rate & rhythm: compute ventricular rate and regularity; identify rhythm (sinus vs atrial "
    "fibrillation/flutter, ectopics, AV blocks); mention P before every QRS and constant PR for sinus.\n"
    "3) Intervals (with reference ranges): PR 120-200 ms (short <120, long >200), QRS <120 ms (widened "
    "suggests bundle branch block/ventricular rhythm), QTc (Bazett) normal ~350-450 ms men, 360-460 ms "
    "women; flag prolonged/short.\n"
    "4) Cardiac axis: describe normal vs left/right axis deviation; comment if axis suggests LVH/RVH or "
    "fascicular block.\n"
    "5) Chamber hypertrophy/atrial abnormality: P pulmonale/P mitrale; LVH/RVH criteria (Sokolow-Lyon etc.) "
    "if relevant.\n"
    "6) QRS morphology: look for pathologic Q-waves (>=40 ms wide or >=25% of ensuing R, in >=2 contiguous "
    "leads), R-wave progression (V1 to V6), bundle branch/fascicular blocks and ventricular pre-excitation.\n"
    "7) ST-segment & T-waves: identify STE/STD location and reciprocity by coronary territory; STE "
    "thresholds (e.g., >=1 mm in limb, >=2 mm precordial in men >40; adjust per age/sex), posterior MI "
    "clues (STD V1-V3 with tall R), pericarditis vs early repolarization differentiation.\n"
    "8) Clinical synthesis: map findings to likely differentials (ACS/STEMI/NSTEMI, old infarct, "
    "electrolyte/drug effects e.g., digoxin, LVH strain, myocarditis), state certainty and red flags "
    "requiring urgent care.\n"
    "9) Recommendations (India-aware): consider serial ECGs, high-sensitivity troponin, 12-lead with "
    "posterior/right-sided leads when indicated, chest pain protocols, echo/TMT or cardiology referral "
    "based on risk.\n\n"
)

COMPARISON_INSTRUCTIONS = (
    "\nWhen two ECGs/X-rays/reports are provided for comparison (A vs B), provide: 1) Key differences; "
    "2) Improvement vs deterioration; 3) Quality/artifacts; 4) Clear conclusion which is better (A/B) "
    "with rationale; 5) Next steps.\n"
)


def build_system_prompt(location: Optional[str], compare: bool) -> str:
    """Build the system prompt, with comparison rules when two studies are compared."""
    prompt = (
        "You are a cautious, expert medical imaging and report analysis assistant specialized in ECG "
        "interpretation (priority), chest X-rays, radiology reports, and lab summaries. "
        "Always state that you are not a substitute for a clinician.\n\n"
        f"User location: {location or 'Unknown'}. Tailor next steps to Indian clinical practice and "
        "access (e.g., government/private facilities, availability of ECG, troponin, echo, TMT).\n\n"
        + ECG_CHECKLIST
        + SECTION_INSTRUCTIONS
    )
    if compare:
        prompt += COMPARISON_INSTRUCTIONS
    return prompt


def to_data_url(content: bytes, mime_type: Optional[str]) -> str:
    """Encode file bytes as a base64 data URL."""
    mime = mime_type or "application/octet-stream"
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def build_content_parts(
    question: str,
    location: str,
    pdf_texts: List[str],
    image_data_urls: List[str],
    compare: bool = False
) -> List[Dict[str, Any]]:
    """
    Build the multimodal user message.

    Args:
        question: Free-text question (may be empty)
        location: User location (may be empty)
        pdf_texts: Extracted text per PDF, in upload order
        image_data_urls: Data URLs per image, in upload order
        compare: Label the first two images as A and B

    Returns:
        List of text and image_url content parts
    """
    parts: List[Dict[str, Any]] = []

    if question:
        parts.append({
            "type": "text",
            "text": f"User question: {question}\nLocation: {location or 'Unknown'}"
        })

    for i, text in enumerate(pdf_texts):
        label = f" (PDF {i + 1})" if len(pdf_texts) > 1 else ""
        parts.append({"type": "text", "text": f"Extracted PDF text{label}:\n{text}"})

    if compare and len(image_data_urls) >= 2:
        parts.append({"type": "text", "text": "Image A"})
        parts.append({"type": "image_url", "image_url": {"url": image_data_urls[0]}})
        parts.append({"type": "text", "text": "Image B"})
        parts.append({"type": "image_url", "image_url": {"url": image_data_urls[1]}})
    else:
        for url in image_data_urls:
            parts.append({"type": "image_url", "image_url": {"url": url}})

    return parts


def extract_message_text(data: Dict[str, Any]) -> str:
    """Pull the answer text out of a chat-completion response body."""
    choices = data.get("choices") or [{}]
    message = (choices[0] or {}).get("message") or {}
    content = message.get("content")

    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for part in content:
            if isinstance(part, dict) and part.get("type") in ("text", "output_text"):
                texts.append(part.get("text") or "")
            elif isinstance(part, str):
                texts.append(part)
        return "\n".join(t for t in texts if t)
    return ""


class LLMEngine:
    """
    Client for an OpenRouter-compatible chat-completion endpoint.

    All configuration, including the API key, is passed in by the caller.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        referer: str = "http://localhost",
        title: str = "Medical Analysis Assistant",
        timeout: float = 90.0,
        temperature: float = 0.2,
        max_tokens: int = 1200,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.referer = referer
        self.title = title
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "LLMEngine":
        return cls(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            model=settings.openrouter_model,
            referer=settings.openrouter_referer,
            title=settings.openrouter_title,
            timeout=settings.request_timeout_seconds,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            transport=transport
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
            "Content-Type": "application/json",
        }

    def build_payload(
        self,
        system_prompt: str,
        content_parts: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content_parts},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def complete(
        self,
        system_prompt: str,
        content_parts: List[Dict[str, Any]]
    ) -> AnalysisResponse:
        """
        Send one chat-completion request.

        Raises:
            MissingCredentialsError: No API key configured
            UpstreamAPIError: Non-success HTTP status
            UpstreamConnectionError: Network failure or timeout
        """
        if not self.is_configured:
            raise MissingCredentialsError()

        payload = self.build_payload(system_prompt, content_parts)
        url = f"{self.base_url}/chat/completions"

        logger.info("Calling chat-completion API", model=self.model, parts=len(content_parts))

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Chat-completion request failed", error=str(e))
            raise UpstreamConnectionError(str(e) or type(e).__name__) from e

        if response.is_error:
            logger.error(
                "Chat-completion API returned error",
                status_code=response.status_code
            )
            raise UpstreamAPIError(response.status_code, _response_details(response))

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamConnectionError(f"Invalid JSON from API: {e}") from e

        content = extract_message_text(data if isinstance(data, dict) else {})

        logger.info("Chat-completion finished", model=self.model, answer_length=len(content))

        return AnalysisResponse(content=content)


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
