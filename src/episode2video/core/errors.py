# -*- coding: utf-8 -*-
"""
episode2video/core/errors.py

项目自定义异常。

分类：
- InvalidInputError    : 致命输入错误（缺剧本、缺场景、参数自相矛盾），同步抛出，调用方必须处理。
- ExternalServiceError : 外部模型调用失败（HTTP 错误、返回形状不对、不是 JSON）。
  skill 层会吃掉它并返回结构化结果，不会让整条流水线中断。

注意：
- 连续性不一致不是异常，是数据（ContinuityResult），这里不定义。
"""

from __future__ import annotations


class Episode2VideoError(Exception):
	"""所有项目异常的基类。"""
	pass


class InvalidInputError(Episode2VideoError, ValueError):
	"""输入不合法：缺 structured_screenplay、scenes 为空等。"""
	pass


class ExternalServiceError(Episode2VideoError):
	"""外部 LLM / 视觉服务调用失败。"""
	pass
