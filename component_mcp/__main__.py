from component_mcp.server.app import main

main()
