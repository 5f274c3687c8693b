#!/usr/bin/env python3
import os

import aws_cdk as cdk

from stacks.auth_stack import AuthStack

app = cdk.App()

stack_name = os.getenv("CDK_STACK_NAME", "CdkModulesAuthStandalone")

account = (os.getenv("CDK_DEFAULT_ACCOUNT") or "").strip()
region = (os.getenv("CDK_DEFAULT_REGION") or "").strip()
# Without both values the stack stays environment-agnostic and region/account
# resolve to the AWS::Region / AWS::AccountId pseudo parameters at deploy time.
env = cdk.Environment(account=account, region=region) if account and region else None

AuthStack(app, stack_name, env=env)

app.synth()
