# -*- coding: utf-8 -*-
"""
analyze_character/prompt.py

角色参考图 -> 外观指纹 的 prompt。只组装文本，不调用模型。
"""

from __future__ import annotations


SYSTEM_PROMPT = (
	"You analyze character reference images for video generation consistency.\n"
	"Output exactly one JSON object, no explanation, no Markdown.\n"
)

USER_PROMPT = (
	"Analyze this image and return a visual fingerprint:\n"
	"{\n"
	'  "visual_fingerprint": {\n'
	'    "age": "approximate age range, e.g. early 30s",\n'
	'    "ethnicity": "ethnicity/heritage",\n'
	'    "hair": "hair color and style",\n'
	'    "eyes": "eye color",\n'
	'    "face_shape": "oval, round, square, angular ...",\n'
	'    "body_type": "athletic, slim, average ...",\n'
	'    "height": "tall, average height, short",\n'
	'    "default_clothing": "clothing visible in the image",\n'
	'    "distinctive_features": "beard, glasses, tattoos ..."\n'
	"  },\n"
	'  "confidence": "high|medium|low",\n'
	'  "analysis_notes": "observations or uncertainties"\n'
	"}\n"
	"Describe only what is visible. Leave a field out if it cannot be seen.\n"
)
