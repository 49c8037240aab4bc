"""Rate limit configuration, throttlers and sliding window limiting."""