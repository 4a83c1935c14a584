import re
import logging

from langchain_anthropic import ChatAnthropic
from langchain_openai import ChatOpenAI
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_aws import ChatBedrock
from langchain_together import ChatTogether

DEFAULT_MODEL_KEY = "anthropic_claude_opus_4"
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 1.0


class ProviderError(Exception):
    """The provider could not be built or returned nothing usable."""


def get_allowed_models(cfg):
    models = cfg.get("llm", {}).get("models", [])
    allowed = [m["key"] for m in models if m.get("enabled")]
    return allowed, models


def resolve_model_entry(cfg):
    """Pick the selected catalog entry, falling back to the first enabled one."""
    allowed, models = get_allowed_models(cfg)
    if not allowed:
        raise ProviderError("no enabled models in [llm.models]")
    sel = cfg.get("llm", {}).get("selected", DEFAULT_MODEL_KEY)
    if sel not in allowed:
        logging.warning(f"Model '{sel}' is unknown or disabled, using '{allowed[0]}'")
        sel = allowed[0]
    return next(m for m in models if m["key"] == sel)


def generation_settings(cfg):
    gen = cfg.get("generation", {})
    return {
        "max_tokens": int(gen.get("max_tokens", DEFAULT_MAX_TOKENS)),
        "temperature": float(gen.get("temperature", DEFAULT_TEMPERATURE)),
        "prompt": gen.get("prompt", ""),
    }


def initialize_llm(cfg):
    """Build the chat model for the configured catalog entry."""
    entry = resolve_model_entry(cfg)
    settings = generation_settings(cfg)
    provider = entry.get("provider")
    model = entry["model"]
    max_tokens = settings["max_tokens"]
    temperature = settings["temperature"]
    logging.info(f"Initializing LLM: {entry['key']} ({provider}/{model})")

    if provider == "anthropic":
        return ChatAnthropic(model=model, max_tokens=max_tokens, temperature=temperature)
    if provider == "openai":
        return ChatOpenAI(model=model, max_tokens=max_tokens, temperature=temperature)
    if provider == "google":
        return ChatGoogleGenerativeAI(model=model, max_tokens=max_tokens, temperature=temperature)
    if provider == "bedrock":
        return ChatBedrock(model_id=model, model_kwargs=dict(max_tokens=max_tokens, temperature=temperature))
    if provider == "together":
        return ChatTogether(model=model, max_tokens=max_tokens, temperature=temperature)
    if provider == "ollama":
        from langchain_ollama import ChatOllama
        return ChatOllama(model=model, num_predict=max_tokens, temperature=temperature)

    raise ProviderError(f"unknown provider '{provider}' for model '{entry['key']}'")


def remove_think_tags(text):
    return re.sub(r'<think>.*?</think>', '', text, flags=re.DOTALL)


def first_text_segment(message):
    """Return the first text part of a chat reply.

    Anthropic replies may carry a list of content blocks; every other provider
    hands back a plain string.
    """
    content = getattr(message, "content", None)
    text = None
    if isinstance(content, str):
        text = content
    elif isinstance(content, list):
        for block in content:
            if isinstance(block, str):
                text = block
                break
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                break
    if not isinstance(text, str):
        raise ProviderError("provider reply has no text segment")
    text = remove_think_tags(text).strip()
    if not text:
        raise ProviderError("provider reply is empty")
    return text


def generate_episode_text(llm_obj, prompt, verbose=False):
    if not prompt:
        raise ProviderError("no prompt configured in [generation]")
    messages = [("user", prompt)]
    if verbose:
        logging.info("LLM prompt messages: %s", messages)
    reply = llm_obj.invoke(messages)
    return first_text_segment(reply)
