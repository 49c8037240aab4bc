# prbot

`prbot` is a library of building blocks for a bot that reviews pull requests. It takes pull request webhook events, given as mappings in the shape of GitHub's webhook JSON, and decides whether to act on them. It asks a policy evaluator that you supply for a verdict. It then approves the pull request, comments on it or requests changes.

It has no dependencies outside the standard library.

## What it contains

### Dispatching

`prbot.pullrequest.dispatcher.Dispatcher(handler, event_filter, metrics)` checks each delivery passed to `dispatch(delivery_id, event_name, event)`.

- It raises a 400 `APIError` in three cases:
  - the event name is not `pull_request`;
  - the action is missing;
  - `pull_request` is missing.
- It ignores events from repositories that are not public.
- It builds a `PullRequestID` from the event and asks the filter whether to handle it.
- It passes these actions to `handler.eval_and_review`: `opened`, `reopened`, `edited`, `labeled`, `unlabeled`, `review_requested`, `review_request_removed`, `assigned`, `unassigned` and `synchronize`.

### Repository filtering

`prbot.pullrequest.event_filter.RepoFilter(store, api)` reads a `RepoFilterConfig` from `store.get()`. The config holds regex allow and deny lists and a list of ignore topics. Call `RepoFilterConfig.update()` to compile the lists.

A match on the deny list always wins. An ignore topic, as listed by `api.list_all_topics(pr)`, wins next. Otherwise the repository is handled only if it matches the allow list.

### Evaluation

`prbot.pullrequest.event_handler.EventHandler(evaluator, reviewer, metrics)` turns an event into a policy input with `to_input`. It calls `evaluator.evaluate(...)`, which must return a mapping with `track` and `review` (`type` and `body`). It then calls the matching reviewer method.

For approvals, `merge_method(event)` picks the merge method:

- rebase when rebase merging is allowed and the pull request changes files;
- otherwise squash when squash merging is allowed;
- otherwise merge.

### Reviewers

Reviewers share the `approve(pr, body, opts)`, `comment(pr, body)` and `request_changes(pr, body)` interface, so they can be stacked:

- `prbot.review.reviewer.GitHubReviewer(api, metrics)` enables auto merge and posts the review through your API object (`enable_auto_merge`, `add_review`). It raises a user error or a service fault, depending on the failure.
- `prbot.review.precondition.PreconditionReviewer(delegate)` refuses to approve when `ApproveOptions.auto_merge_enabled` is false.
- `prbot.review.rate_limited.RateLimitedReviewer(delegate, api, throttler)` consults a throttler before approving.
- `prbot.review.dedup.DedupReviewer(delegate, api, service_account)` skips a review of a type the service account has already left, using `api.list_reviews(pr)`.

`prbot.review.reviewer` also defines `ReviewType`, `MergeMethod`, `ApproveOptions` and `parse_review_state`.

### Rate limiting

`prbot.rate` provides the following:

- `config.LimiterConfig` and `config.Limit`, with per-key overrides. Windows are given as durations such as `"59s"`, `"10m"` or `"1h30m"`; see `parse_duration` and `format_duration`.
- `sliding_window.SlidingWindow`, an in-memory sliding window counter.
- `sliding_window.SlidingWindowRegistry`. It holds one window per key and drops windows that have not been used lately. A background thread sweeps them out; stop it with `close()`, or use the registry as a context manager.
- `sliding_window.SlidingWindowLimiter(keyer, registry, store)`. It raises a 429 `APIError` when a key's limit is exhausted.
- `throttler.Facade`, which combines several throttlers, and `throttler.StaticThrottler`, which always gives the same answer.

The key functions `org_key`, `repo_key` and `author_key` are in `prbot.domain`.

### Secrets

`prbot.secrets.SecretManager(api)` calls `api.get_secret_value(SecretId=...)` and returns its `SecretString`. It raises `SecretDoesNotExistError` when the value is missing or empty.

### Errors and metrics

Errors are raised as exceptions. The errors meant for callers are `prbot.domain.APIError` instances, each carrying an HTTP status code. They are built with `user_error` (422), `service_fault` (500), `too_many_requests` (429) and `invalid_request` (400).

Metrics go to any object with `emit_dist(name, value, tags)`. `NoopEmitter` drops them.

## Example

```python
from prbot.domain import NoopEmitter, PullRequestID
from prbot.rate.config import Limit, LimiterConfig
from prbot.rate.throttler import Facade, StaticThrottler

config = LimiterConfig(default=Limit(value=10, window_str="1m"))
config.update()
print(config.get("Repo/owner1/repo1").window)  # 60.0

pr = PullRequestID(owner="owner1", repo="repo1", number=1, node_id="n1",
                   repo_full_name="owner1/repo1", author="user1", url="owner1/repo1/1")
facade = Facade(NoopEmitter(), StaticThrottler(None), StaticThrottler(None))
facade.should_throttle(pr)  # returns normally: nothing is throttled
```

## What it does not do

`prbot` is a library only, and you supply every outside service as an object:

- It has no HTTP server to receive webhooks and no command to start one.
- It has no GitHub client.
- It has no policy engine.
- It has no secrets store.

Rate-limit windows live in memory, so they are not shared between processes.

Nothing stops two deliveries for the same pull request from being reviewed at the same time.

## Running the tests

```
pip install -e ".[test]"
pytest
```