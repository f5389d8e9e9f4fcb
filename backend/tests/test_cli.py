"""Permission inspection commands."""


class TestPermsCommands:
    def test_list_for_role_grouped_by_category(self, app):
        result = app.test_cli_runner().invoke(args=['perms', 'list', '--role', 'MEMBER', '--category', 'WALLET'])
        assert result.exit_code == 0
        assert result.output.splitlines()[:3] == ['[WALLET]', '  VIEW_OWN_WALLET', '  REQUEST_TOPUP']
        assert 'MANAGE_WALLETS' not in result.output
        assert '2 permission(s)' in result.output

    def test_show_definition(self, app):
        result = app.test_cli_runner().invoke(args=['perms', 'show', 'MANAGE_WALLETS'])
        assert result.exit_code == 0
        assert result.output.startswith('MANAGE_WALLETS (WALLET)')
        assert 'Granted to: ADMIN' in result.output

    def test_show_unknown_code(self, app):
        result = app.test_cli_runner().invoke(args=['perms', 'show', 'FLY_DRONES'])
        assert result.exit_code != 0
        assert 'Unknown permission code' in result.output

    def test_check(self, app):
        result = app.test_cli_runner().invoke(args=['perms', 'check', 'MEMBER', 'REQUEST_TOPUP'])
        assert result.output.strip() == 'PASS MEMBER has REQUEST_TOPUP'
