"""Reviewers that approve, comment on or request changes on pull requests, and wrappers around them."""