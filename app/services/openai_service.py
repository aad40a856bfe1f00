# app/services/openai_service.py
import logging
from typing import Any, Dict, Tuple
from flask import Flask
from openai import OpenAI, OpenAIError

from app.core.exceptions import UpstreamError


class OpenAIService:
    """
    OpenAI API 연동을 담당하는 서비스 클래스.
    Insight Composer가 만든 요청을 그대로 보내고 응답 텍스트를 돌려줍니다.
    재시도는 하지 않습니다. 실패는 해당 요청에서 바로 UpstreamError가 됩니다.
    """

    def __init__(self):
        """
        OpenAI 클라이언트를 None으로 초기화합니다.
        실제 클라이언트는 init_app 메서드를 통해 설정됩니다.
        """
        self.client = None
        self.model = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 OpenAI 클라이언트를 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        api_key = app.config.get('OPENAI_API_KEY')
        if not api_key:
            raise ValueError("OPENAI_API_KEY 설정이 .env 파일에 필요합니다.")

        self.client = OpenAI(api_key=api_key, max_retries=0)
        self.model = app.config.get('OPENAI_MODEL', 'gpt-4o-mini')
        logging.info(f"OpenAIService: OpenAI API 서비스가 초기화되었습니다 (model: {self.model}).")

    def complete(self, payload) -> Tuple[str, Dict[str, Any]]:
        """
        PromptPayload 하나를 chat.completions로 전송합니다.

        :param payload: composer.PromptPayload
        :return: (응답 본문 텍스트, 저장용 원본 응답 딕셔너리)
        """
        if not self.client:
            raise RuntimeError("OpenAIService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        request_kwargs = {
            "model": self.model,
            "temperature": payload.temperature,
            "messages": payload.messages,
        }
        if payload.json_mode:
            request_kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = self.client.chat.completions.create(**request_kwargs)
        except OpenAIError as e:
            logging.error(f"OpenAI 호출 실패 ({payload.metadata.get('kind')}): {e}", exc_info=True)
            raise UpstreamError(str(e) or "Language model request failed")

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise UpstreamError("No response from OpenAI")

        return content.strip(), completion.model_dump()
