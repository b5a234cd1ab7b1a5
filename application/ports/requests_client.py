# application/ports/requests_client.py
from __future__ import annotations

from typing import Dict, Optional

import requests
import urllib3

from application.ports.http_client import HttpClientPort
from domain.http_method import HttpMethod
from domain.request_spec import RequestSpec
from domain.response import ResponseSnapshot


class RequestsHttpClient(HttpClientPort):
    def __init__(self, timeout_sec: float = 10.0, verify_tls: bool = True):
        self._timeout = timeout_sec
        self._verify = verify_tls
        if not verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def send(self, spec: RequestSpec, method: HttpMethod, path: str) -> ResponseSnapshot:
        proxies: Optional[Dict[str, str]] = None
        if spec.proxy is not None:
            proxies = {"http": spec.proxy.url, "https": spec.proxy.url}

        data = spec.body.encode("utf-8") if spec.body is not None else None

        # Session はワーカー間で共有しない（呼び出しごとに生成）
        with requests.Session() as session:
            resp = session.request(
                method=method.value,
                url=spec.url_for(path),
                headers=spec.all_headers(),
                params=spec.query_params or None,
                data=data,
                proxies=proxies,
                # connect / read 共通のタイムアウト
                timeout=(self._timeout, self._timeout),
                verify=self._verify,
            )

        return ResponseSnapshot(
            status=resp.status_code,
            url=str(resp.url),
            text=resp.text,
            headers=dict(resp.headers),
            elapsed_ms=int(resp.elapsed.total_seconds() * 1000),
        )
