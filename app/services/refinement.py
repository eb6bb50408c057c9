import json
import logging

import anthropic
import httpx

from app.schemas.product import Measurements, Refinement

logger = logging.getLogger(__name__)

REFINE_PROMPT = """Você é um normalizador de dados de produto para marketplaces.
Dados:
- Nome: {name}
- Marca: {brand}
- EAN13: {identifier}
- Peso (kg): {weight_kg}
- Largura (cm): {width_cm}
- Altura (cm): {height_cm}
- Comprimento (cm): {length_cm}

Tarefas:
1) Marque "Marca" com capitalização correta e sem palavras extras.
2) Gere uma "Descrição Curta" (máx. 180 caracteres, sem emojis), destacando o essencial e dimensões se disponíveis.
Responda ONLY em JSON com {{"brand":"...", "short_description":"..."}}."""


def _fmt(value: float | None) -> str:
    return "" if value is None else f"{value:g}"


def build_prompt(name: str, brand: str, identifier: str, measurements: Measurements) -> str:
    return REFINE_PROMPT.format(
        name=name or "",
        brand=brand or "",
        identifier=identifier,
        weight_kg=_fmt(measurements.weight_kg),
        width_cm=_fmt(measurements.width_cm),
        height_cm=_fmt(measurements.height_cm),
        length_cm=_fmt(measurements.length_cm),
    )


def parse_refinement(text: str, fallback_brand: str) -> Refinement:
    """Parse the model's JSON reply, tolerating markdown fences and chatter."""
    if not isinstance(text, str):
        return Refinement(brand=fallback_brand)
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1].rsplit("```", 1)[0].strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            return Refinement(brand=fallback_brand)
        try:
            data = json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return Refinement(brand=fallback_brand)

    if not isinstance(data, dict):
        return Refinement(brand=fallback_brand)

    brand = data.get("brand")
    description = data.get("short_description")
    return Refinement(
        brand=brand.strip() if isinstance(brand, str) else fallback_brand,
        short_description=description.strip() if isinstance(description, str) else "",
    )


class RefinementService:
    """Normalize brand casing and write a short description with an LLM.

    Any failure, or a missing API key, yields a no-op result that keeps the
    input brand and has an empty description.
    """

    def __init__(
        self,
        backend: str = "openai",
        openai_api_key: str = "",
        openai_url: str = "https://api.openai.com/v1",
        openai_model: str = "gpt-4o-mini",
        anthropic_api_key: str = "",
        anthropic_model: str = "claude-haiku-4-5",
        timeout: float = 20.0,
    ):
        self.backend = backend
        self.openai_api_key = openai_api_key
        self.openai_url = openai_url.rstrip("/")
        self.openai_model = openai_model
        self.anthropic_api_key = anthropic_api_key
        self.anthropic_model = anthropic_model
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        if self.backend == "anthropic":
            return bool(self.anthropic_api_key)
        return bool(self.openai_api_key)

    async def refine(
        self,
        name: str,
        brand: str,
        identifier: str,
        measurements: Measurements,
    ) -> Refinement:
        brand = brand or ""
        if not self.enabled:
            return Refinement(brand=brand)

        prompt = build_prompt(name, brand, identifier, measurements)
        try:
            if self.backend == "anthropic":
                text = await self._complete_anthropic(prompt)
            else:
                text = await self._complete_openai(prompt)
        except Exception:
            logger.exception("Refinement via %s failed for %s", self.backend, identifier)
            return Refinement(brand=brand)

        return parse_refinement(text, brand)

    async def _complete_openai(self, prompt: str) -> str:
        payload = {
            "model": self.openai_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.2,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.openai_api_key}",
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{self.openai_url}/chat/completions",
                json=payload,
                headers=headers,
            )
            resp.raise_for_status()
            return resp.json()["choices"][0]["message"]["content"]

    async def _complete_anthropic(self, prompt: str) -> str:
        client = anthropic.AsyncAnthropic(api_key=self.anthropic_api_key, timeout=self.timeout)
        response = await client.messages.create(
            model=self.anthropic_model,
            max_tokens=256,
            temperature=0.2,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text
