"""
confroom.core.rate_limit
~~~~~~~~~~~~~~~~~~~~~~~~

HTTP 接口的限流配置。
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from confroom.core.config import settings

# 基于客户端 IP 地址进行限流；写接口的限流同时挡住"连点新增"产生的重复请求
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)
