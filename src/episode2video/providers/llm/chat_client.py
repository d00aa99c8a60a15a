# -*- coding: utf-8 -*-
"""
providers/llm/chat_client.py

这个文件做什么：
- 提供一个极薄的 OpenAI 兼容 Chat Client（SiliconFlow / OpenAI / 本地网关都行），供 skill 层调用。
- 支持从项目根目录的 .env 读取配置，避免在 shell 里 export。
- 对外暴露三个方法：
  chat_json(system_prompt, user_prompt, image_urls=None) -> dict
  chat_text(system_prompt, user_prompt, temperature=0.5, max_tokens=None) -> str
  close()

配置来源优先级（从高到低）：
1) 显式传参（model/base_url/api_key）
2) .env 文件
3) 系统环境变量（兜底）

变量：
- LLM_API_KEY / LLM_BASE_URL / LLM_MODEL / LLM_VISION_MODEL / LLM_TIMEOUT_S

安全约定：
- .env 必须写进 .gitignore
- 不要把 key 写进任何代码文件
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import httpx
from dotenv import load_dotenv

from episode2video.core.errors import ExternalServiceError


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.siliconflow.cn/v1"
DEFAULT_MODEL = "deepseek-ai/DeepSeek-V3.2"
DEFAULT_VISION_MODEL = "Qwen/Qwen2.5-VL-72B-Instruct"


def _snip(text: str, limit: int = 1000) -> str:
	if len(text) > limit:
		return text[:limit] + "...(truncated)"
	return text


@dataclass
class ChatConfig:
	api_key: str
	base_url: str
	model: str
	vision_model: str = DEFAULT_VISION_MODEL
	timeout_s: float = 60.0


class ChatLLMClient:
	def __init__(self, cfg: ChatConfig, transport: Optional[httpx.BaseTransport] = None):
		self.cfg = cfg
		self._client = httpx.Client(
			base_url=cfg.base_url,
			timeout=httpx.Timeout(cfg.timeout_s),
			headers={
				"Authorization": f"Bearer {cfg.api_key}",
				"Content-Type": "application/json",
			},
			transport=transport,
		)

	def close(self) -> None:
		self._client.close()

	def _post_chat(self, payload: Dict[str, Any]) -> str:
		try:
			r = self._client.post("/chat/completions", json=payload)
		except httpx.HTTPError as e:
			raise ExternalServiceError(f"LLM request failed: {e}")

		if r.status_code < 200 or r.status_code >= 300:
			raise ExternalServiceError(f"LLM HTTP {r.status_code}: {_snip(r.text)}")

		try:
			data = r.json()
			content = data["choices"][0]["message"]["content"]
		except (ValueError, KeyError, IndexError, TypeError):
			raise ExternalServiceError(f"Unexpected response shape: {_snip(r.text)}")

		if not content:
			raise ExternalServiceError("LLM returned empty content")

		return content

	def chat_json(
		self,
		system_prompt: str,
		user_prompt: str,
		image_urls: Optional[Sequence[str]] = None,
	) -> Dict[str, Any]:
		user_content: Any = user_prompt
		model = self.cfg.model

		# 有图就走视觉模型，content 改成多段（text + image_url）
		if image_urls:
			model = self.cfg.vision_model
			parts: List[Dict[str, Any]] = [{"type": "text", "text": user_prompt}]
			parts += [{"type": "image_url", "image_url": {"url": u, "detail": "high"}} for u in image_urls]
			user_content = parts

		payload: Dict[str, Any] = {
			"model": model,
			"messages": [
				{"role": "system", "content": system_prompt},
				{"role": "user", "content": user_content},
			],
			"temperature": 0.3,
			"top_p": 0.9,
			# JSON mode：显著减少 Markdown/废话
			"response_format": {"type": "json_object"},
		}

		content = self._post_chat(payload)
		logger.debug("chat_json model=%s chars=%d", model, len(content))

		try:
			data = json.loads(content)
		except ValueError:
			raise ExternalServiceError(f"LLM output is not valid JSON. content_snip={_snip(content)}")

		if not isinstance(data, dict):
			raise ExternalServiceError("LLM output JSON is not an object")
		return data

	def chat_text(
		self,
		system_prompt: str,
		user_prompt: str,
		temperature: float = 0.5,
		max_tokens: Optional[int] = None,
	) -> str:
		payload: Dict[str, Any] = {
			"model": self.cfg.model,
			"messages": [
				{"role": "system", "content": system_prompt},
				{"role": "user", "content": user_prompt},
			],
			"temperature": temperature,
		}
		if max_tokens:
			payload["max_tokens"] = max_tokens

		content = self._post_chat(payload)
		logger.debug("chat_text model=%s chars=%d", self.cfg.model, len(content))
		return content.strip()


def find_project_root(start: Optional[Path] = None) -> Path:
	"""向上查找含 .env 的目录；找不到就用起点。"""
	start = (start or Path.cwd()).resolve()
	root = start
	while root != root.parent:
		if (root / ".env").exists():
			return root
		root = root.parent
	return start


def _load_dotenv_if_present(project_root: Path) -> None:
	env_path = project_root / ".env"
	if env_path.exists():
		load_dotenv(dotenv_path=str(env_path), override=False)


def load_llm_client(
	project_root: Optional[str] = None,
	api_key: Optional[str] = None,
	base_url: Optional[str] = None,
	model: Optional[str] = None,
	vision_model: Optional[str] = None,
	timeout_s: Optional[float] = None,
) -> ChatLLMClient:
	"""
	加载 Chat client。

	默认从 project_root/.env 读取（project_root 缺省为当前工作目录）。
	缺 key 时直接报错，调用方（stage）自己决定要不要降级。
	"""
	root = Path(project_root or os.getcwd()).resolve()
	_load_dotenv_if_present(root)

	key = (api_key or os.environ.get("LLM_API_KEY", "")).strip()
	if not key:
		raise ExternalServiceError("Missing LLM_API_KEY (from .env or env)")

	url = (base_url or os.environ.get("LLM_BASE_URL", "")).strip() or DEFAULT_BASE_URL
	m = (model or os.environ.get("LLM_MODEL", "")).strip() or DEFAULT_MODEL
	vm = (vision_model or os.environ.get("LLM_VISION_MODEL", "")).strip() or DEFAULT_VISION_MODEL
	t = float(timeout_s or os.environ.get("LLM_TIMEOUT_S", "60").strip() or 60)

	cfg = ChatConfig(api_key=key, base_url=url, model=m, vision_model=vm, timeout_s=t)
	return ChatLLMClient(cfg)
