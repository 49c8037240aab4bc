"""Pull request event dispatch, repository filtering and policy evaluation."""